"""Minimal markdown handling for the AI report sections.

Only what the report needs: pipe tables, headings, list items and inline
bold/italic/code/links.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Literal
from xml.sax.saxutils import escape

SEPARATOR_CELL = re.compile(r"^:?-{3,}:?$")
HEADING = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
LIST_ITEM = re.compile(r"^(\s*)(\d+[.)]|[-*+•])\s+(.*)$")

_BOLD = re.compile(r"\*\*(.+?)\*\*|__(.+?)__")
_ITALIC = re.compile(r"(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?!\*)|(?<![\w_])_(?!\s)(.+?)(?<!\s)_(?![\w_])")
_CODE = re.compile(r"`([^`]+)`")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")


@dataclass(frozen=True)
class MarkdownTable:
    headers: list[str]
    rows: list[list[str]]


@dataclass
class Block:
    kind: Literal["text", "table"]
    lines: list[str] = field(default_factory=list)
    table: MarkdownTable | None = None


def is_table_line(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) > 1 and stripped.startswith("|") and stripped.endswith("|")


def split_cells(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip()[1:-1].split("|")]


def _is_separator(cells: list[str]) -> bool:
    return bool(cells) and all(SEPARATOR_CELL.match(cell.replace(" ", "")) for cell in cells)


def parse_markdown_table(lines: Iterable[str]) -> MarkdownTable | None:
    """Parse pipe-table ``lines`` into headers and body rows.

    Returns ``None`` unless there is a header, a separator and at least one
    body row. Body rows are padded or truncated to the header width and rows
    with no content are dropped.
    """

    table_lines = [line for line in lines if is_table_line(line)]
    if len(table_lines) <= 2:
        return None

    headers = split_cells(table_lines[0])
    if not _is_separator(split_cells(table_lines[1])):
        return None

    width = len(headers)
    rows: list[list[str]] = []
    for line in table_lines[2:]:
        cells = split_cells(line)
        if _is_separator(cells) or not any(cells):
            continue
        cells = (cells + [""] * width)[:width]
        rows.append(cells)

    if not rows:
        return None
    return MarkdownTable(headers=headers, rows=rows)


def split_blocks(content: str) -> list[Block]:
    """Group ``content`` into runs of table lines and runs of other lines."""

    blocks: list[Block] = []
    for line in content.splitlines():
        kind: Literal["text", "table"] = "table" if is_table_line(line) else "text"
        if not blocks or blocks[-1].kind != kind:
            blocks.append(Block(kind=kind))
        blocks[-1].lines.append(line)

    merged: list[Block] = []
    for block in blocks:
        if block.kind == "table":
            block.table = parse_markdown_table(block.lines)
            if block.table is None:
                # Too short to be a real table; keep the text as written
                block.kind = "text"
        if merged and merged[-1].kind == "text" and block.kind == "text":
            merged[-1].lines.extend(block.lines)
        else:
            merged.append(block)
    return merged


def strip_inline(text: str) -> str:
    """Drop inline markdown markers, keeping the text."""

    text = _LINK.sub(lambda match: f"{match.group(1)} ({match.group(2)})", text)
    text = _BOLD.sub(lambda match: match.group(1) or match.group(2), text)
    text = _ITALIC.sub(lambda match: match.group(1) or match.group(2), text)
    text = _CODE.sub(r"\1", text)
    return text.strip()


def inline_to_markup(text: str) -> str:
    """Convert inline markdown to the XML-ish markup reportlab paragraphs accept."""

    text = escape(text)
    text = _LINK.sub(r'<link href="\2" color="blue">\1</link>', text)
    text = _BOLD.sub(lambda match: f"<b>{match.group(1) or match.group(2)}</b>", text)
    text = _ITALIC.sub(lambda match: f"<i>{match.group(1) or match.group(2)}</i>", text)
    text = _CODE.sub(r'<font face="Courier">\1</font>', text)
    return text
