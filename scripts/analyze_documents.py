"""Analyse a batch of financial documents from the command line.

Example:

    python -m scripts.analyze_documents --month "March 2025" \
        --bank-statement statements/march.pdf --bill bills/*.png --output reports

Writes one PDF per report section into ``--output``.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from finance_assistant import analysis, config, documents, pdf, periods, report

logger = logging.getLogger(__name__)


def _load(paths: list[Path]) -> list[documents.UploadedDocument]:
    uploads = []
    for path in paths:
        if not path.is_file():
            raise FileNotFoundError(f"Path not found: {path}")
        uploads.append(
            documents.UploadedDocument(
                name=path.name,
                data=path.read_bytes(),
                mime_type=documents.guess_mime_type(path.name),
            )
        )
    return uploads


def _period(args: argparse.Namespace) -> periods.Period:
    if args.month:
        return periods.single_month(*periods.parse_month_year(args.month))
    if args.date_from or args.date_to:
        from_month, from_year = periods.parse_month_year(args.date_from) if args.date_from else ("", "")
        to_month, to_year = periods.parse_month_year(args.date_to) if args.date_to else ("", "")
        return periods.month_range(from_month, from_year, to_month, to_year)
    raise periods.PeriodError("Please select both Month and Year.")


def _prepare(args: argparse.Namespace, settings: config.Settings) -> list[documents.PreparedDocument]:
    prepared: list[documents.PreparedDocument] = []
    selections = zip(documents.CATEGORIES, (args.bank_statement, args.bill))
    for category, paths in selections:
        batch = documents.prepare_documents(_load(paths), category, settings)
        kept, dropped = documents.add_documents([], batch, settings.max_files_per_category)
        if dropped:
            print(f"Skipped {dropped} file(s) over the {settings.max_files_per_category}-file limit for {category}")
        prepared.extend(kept)
    return prepared


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Analyse financial documents and export the reports as PDFs")
    period_group = parser.add_mutually_exclusive_group()
    period_group.add_argument("--month", help="Single month, e.g. 'March 2025'")
    period_group.add_argument("--from", dest="date_from", help="Range start, e.g. 'January 2025'")
    parser.add_argument("--to", dest="date_to", help="Range end, e.g. 'March 2025'")
    parser.add_argument("--bank-statement", type=Path, nargs="*", default=[], help="Bank statement files")
    parser.add_argument("--bill", type=Path, nargs="*", default=[], help="Bills, payslips and other documents")
    parser.add_argument("--output", type=Path, default=Path("reports"))
    parser.add_argument("--provider", choices=config.PROVIDERS, help="Override AI_PROVIDER")
    args = parser.parse_args(argv)
    if args.month and args.date_to:
        parser.error("argument --to: not allowed with argument --month")

    try:
        settings = config.load_settings(secrets={})
        if args.provider:
            settings = dataclasses.replace(settings, provider=args.provider)
        config.configure_logging(settings.log_level)
        period = _period(args)
        prepared = _prepare(args, settings)
        result = analysis.analyze_documents(period.label, prepared, settings=settings)
    except (ValueError, FileNotFoundError, analysis.AnalysisError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    error = report.validation_error(result)
    if error:
        print(f"Validation Error: {error}", file=sys.stderr)
        return 2
    note = report.validation_note(result)
    if note:
        print(f"Note: {note}")

    args.output.mkdir(parents=True, exist_ok=True)
    renderer = pdf.PdfRenderer(settings)
    for tab in report.build_tabs(result):
        if not tab.has_content:
            logger.info("Skipping empty section %s", tab.label)
            continue
        target = args.output / tab.filename
        target.write_bytes(renderer.render(tab.label, tab.content))
        print(f"Wrote {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
