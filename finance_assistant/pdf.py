"""PDF export of report sections with reportlab."""

from __future__ import annotations

import io
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import markdown_blocks
from .config import Settings
from .markdown_blocks import HEADING, LIST_ITEM, MarkdownTable

logger = logging.getLogger(__name__)

HEADER_FILL = colors.Color(79 / 255, 70 / 255, 229 / 255)
TOTAL_ROW_FILL = colors.Color(249 / 255, 250 / 255, 251 / 255)
MARGIN = 14 * mm
CUSTOM_FONT = "ReportFont"

# Built-in PDF fonts only cover cp1252
_TRANSLITERATIONS = {
    "₹": "Rs.",
    "✅": "",
    "❌": "",
    "⚠️": "",
    "⚠": "",
    "→": "->",
    "≈": "~",
    "\u00a0": " ",
}


def _builtin_safe(text: str) -> str:
    for symbol, replacement in _TRANSLITERATIONS.items():
        text = text.replace(symbol, replacement)
    return text.encode("cp1252", errors="ignore").decode("cp1252")


def _register_font(path: str) -> bool:
    if CUSTOM_FONT in pdfmetrics.getRegisteredFontNames():
        return True
    try:
        pdfmetrics.registerFont(TTFont(CUSTOM_FONT, path))
    except Exception:
        logger.exception("Could not load PDF font %s; using Helvetica", path)
        return False
    pdfmetrics.registerFontFamily(
        CUSTOM_FONT, normal=CUSTOM_FONT, bold=CUSTOM_FONT, italic=CUSTOM_FONT, boldItalic=CUSTOM_FONT
    )
    return True


class _Styles:
    def __init__(self, font: str | None) -> None:
        base = getSampleStyleSheet()
        regular = font or "Helvetica"
        bold = font or "Helvetica-Bold"

        self.title = ParagraphStyle(
            "ReportTitle", parent=base["Title"], fontName=bold, fontSize=18, leading=22, alignment=0
        )
        self.body = ParagraphStyle("ReportBody", parent=base["BodyText"], fontName=regular, fontSize=12, leading=16)
        self.list_item = ParagraphStyle("ReportListItem", parent=self.body, leftIndent=14, firstLineIndent=-10)
        self.headings = {
            level: ParagraphStyle(
                f"ReportHeading{level}",
                parent=base[f"Heading{min(level + 1, 4)}"],
                fontName=bold,
            )
            for level in range(1, 7)
        }
        self.cell = ParagraphStyle("ReportCell", parent=self.body, fontSize=10, leading=13)
        self.header_cell = ParagraphStyle("ReportHeaderCell", parent=self.cell, fontName=bold, textColor=colors.white)
        self.total_cell = ParagraphStyle("ReportTotalCell", parent=self.cell, fontName=bold)


class PdfRenderer:
    """Turns a markdown section into PDF bytes."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self.use_custom_font = bool(settings.pdf_font_path) and _register_font(settings.pdf_font_path or "")
        self.styles = _Styles(CUSTOM_FONT if self.use_custom_font else None)

    def _paragraph(self, text: str, style: ParagraphStyle, prefix: str = "") -> Paragraph:
        if not self.use_custom_font:
            text = _builtin_safe(text)
        try:
            return Paragraph(prefix + markdown_blocks.inline_to_markup(text), style)
        except ValueError:
            # Unbalanced inline markers produce markup reportlab cannot parse
            logger.warning("Falling back to plain text for line: %.60s", text)
            return Paragraph(prefix + escape(markdown_blocks.strip_inline(text)), style)

    def _text_flowables(self, lines: list[str]) -> list:
        flowables: list = []
        for line in lines:
            if not line.strip():
                flowables.append(Spacer(1, 4))
                continue
            heading = HEADING.match(line.strip())
            if heading:
                level = len(heading.group(1))
                flowables.append(self._paragraph(heading.group(2), self.styles.headings[level]))
                continue
            item = LIST_ITEM.match(line)
            if item:
                marker = item.group(2)
                bullet = "•" if marker in "-*+•" else marker
                indent = len(item.group(1).expandtabs(4)) // 2
                style = ParagraphStyle(
                    f"ReportListItem{indent}",
                    parent=self.styles.list_item,
                    leftIndent=self.styles.list_item.leftIndent + indent * 6,
                )
                flowables.append(self._paragraph(item.group(3), style, prefix=f"{escape(bullet)} "))
                continue
            flowables.append(self._paragraph(line.strip(), self.styles.body))
        return flowables

    def _table(self, table: MarkdownTable, width: float) -> Table:
        last = len(table.rows) - 1
        data = [[self._paragraph(cell, self.styles.header_cell) for cell in table.headers]]
        for index, row in enumerate(table.rows):
            style = self.styles.total_cell if index == last else self.styles.cell
            data.append([self._paragraph(cell, style) for cell in row])

        column_width = width / max(1, len(table.headers))
        # Rows taller than a page are split across pages
        flowable = Table(data, colWidths=[column_width] * len(table.headers), repeatRows=1, splitInRow=1)
        flowable.setStyle(
            TableStyle(
                [
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#c8c8c8")),
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
                    ("BACKGROUND", (0, -1), (-1, -1), TOTAL_ROW_FILL),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("TOPPADDING", (0, 0), (-1, -1), 5),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
                    ("LEFTPADDING", (0, 0), (-1, -1), 5),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 5),
                ]
            )
        )
        return flowable

    def render(self, title: str, content: str) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=title,
        )
        story: list = [self._paragraph(title, self.styles.title), Spacer(1, 8)]
        for block in markdown_blocks.split_blocks(content or ""):
            if block.kind == "table" and block.table is not None:
                story.append(self._table(block.table, doc.width))
                story.append(Spacer(1, 8))
            else:
                story.extend(self._text_flowables(block.lines))
        doc.build(story)
        return buffer.getvalue()


def render_pdf(title: str, content: str, settings: Settings | None = None) -> bytes:
    """Render one report section as a paginated A4 PDF."""

    return PdfRenderer(settings).render(title, content)
