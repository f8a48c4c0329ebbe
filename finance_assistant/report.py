"""Report tabs built from an analysis result, plus their downloads."""

from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass
from typing import Mapping

from .config import Settings
from .pdf import PdfRenderer

REPORT_TABS: tuple[tuple[str, str], ...] = (
    ("incomeAndExpense", "Income and Expense"),
    ("whereMoneyIsGoing", "Spending Summary"),
    ("whatCanBeSaved", "Savings Opportunities"),
    ("expensesToAvoid", "Expense Optimization Suggestions"),
    ("actionsToTake", "Action Plan for the Month"),
    ("subscriptions", "Subscription"),
)

EMPTY_SECTION_TEXT = "No data available for this section."
ARCHIVE_NAME = "Financial_Reports.zip"


@dataclass(frozen=True)
class ReportTab:
    key: str
    label: str
    content: str

    @property
    def has_content(self) -> bool:
        return bool(self.content.strip())

    @property
    def filename(self) -> str:
        return pdf_filename(self.label)


def pdf_filename(label: str) -> str:
    stem = re.sub(r"\s+", "_", label.strip())
    return f"{stem}.pdf"


def build_tabs(result: Mapping[str, object]) -> list[ReportTab]:
    tabs = []
    for key, label in REPORT_TABS:
        value = result.get(key)
        tabs.append(ReportTab(key=key, label=label, content="" if value is None else str(value)))
    return tabs


def validation_error(result: Mapping[str, object]) -> str | None:
    """The period-mismatch message, when the model refused to analyse."""

    message = str(result.get("validationError") or "").strip()
    return message or None


def validation_note(result: Mapping[str, object]) -> str | None:
    message = str(result.get("validationNote") or "").strip()
    return message or None


def bundle_pdfs(tabs: list[ReportTab], settings: Settings | None = None) -> bytes:
    """Zip one PDF per tab that has content."""

    renderer = PdfRenderer(settings)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for tab in tabs:
            if tab.has_content:
                archive.writestr(tab.filename, renderer.render(tab.label, tab.content))
    return buffer.getvalue()
