"""Streamlit entry point for the Financial Analyzer app."""

from __future__ import annotations

import logging

import streamlit as st
from finance_assistant import analysis, cache, config, documents, pdf, periods, report, utils, viz

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ["pdf", "xls", "xlsx", "csv", "doc", "docx", "txt", *documents.IMAGE_EXTENSIONS]
SESSION_DEFAULTS = {
    "documents": {},
    "notices": {},
    "result": None,
    "error": None,
    "generation": 0,
}


@st.cache_resource(show_spinner=False)
def _analysis_cache(maxsize: int) -> cache.AnalysisCache:
    return cache.AnalysisCache(maxsize=maxsize)


@st.cache_data(show_spinner=False)
def _pdf_bytes(label: str, content: str, font_path: str | None) -> bytes:
    return pdf.render_pdf(label, content, config.Settings(pdf_font_path=font_path))


@st.cache_data(show_spinner=False)
def _archive_bytes(sections: tuple[tuple[str, str, str], ...], font_path: str | None) -> bytes:
    tabs = [report.ReportTab(key, label, content) for key, label, content in sections]
    return report.bundle_pdfs(tabs, config.Settings(pdf_font_path=font_path))


def _init_state() -> None:
    for key, value in SESSION_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value.copy() if isinstance(value, dict) else value


def _refresh() -> None:
    generation = st.session_state.get("generation", 0) + 1
    for key in list(st.session_state.keys()):
        del st.session_state[key]
    _init_state()
    st.session_state["generation"] = generation


def _select(label: str, options: list, key: str) -> str:
    choice = st.selectbox(label, ["", *options], key=key, format_func=lambda value: str(value) or f"Select {label}")
    return str(choice)


def _render_period_inputs() -> tuple[str, ...]:
    """Render the period controls and return the raw selections."""

    st.markdown("### 📅 Select Period")
    generation = st.session_state["generation"]
    mode = st.radio(
        "Period type",
        ["Single Month", "Date Range"],
        horizontal=True,
        key=f"date_mode_{generation}",
        label_visibility="collapsed",
    )
    years = periods.year_options()

    if mode == "Single Month":
        month_col, year_col = st.columns(2)
        with month_col:
            month = _select("Month", list(periods.MONTHS), key=f"month_{generation}")
        with year_col:
            year = _select("Year", years, key=f"year_{generation}")
        return ("single", month, year)
    st.caption("From")
    from_month_col, from_year_col = st.columns(2)
    with from_month_col:
        from_month = _select("Month", list(periods.MONTHS), key=f"from_month_{generation}")
    with from_year_col:
        from_year = _select("Year", years, key=f"from_year_{generation}")
    st.caption("To")
    to_month_col, to_year_col = st.columns(2)
    with to_month_col:
        to_month = _select("Month", list(periods.MONTHS), key=f"to_month_{generation}")
    with to_year_col:
        to_year = _select("Year", years, key=f"to_year_{generation}")
    return ("range", from_month, from_year, to_month, to_year)


def _selected_period(inputs: tuple[str, ...]) -> periods.Period:
    if inputs[0] == "single":
        return periods.single_month(inputs[1], inputs[2])
    return periods.month_range(*inputs[1:])


def _render_uploader(category: str, settings: config.Settings) -> None:
    generation = st.session_state["generation"]
    limit = settings.max_files_per_category
    held: list[documents.PreparedDocument] = st.session_state["documents"].get(category, [])

    with st.container(border=True):
        title_col, count_col = st.columns([5, 1])
        title_col.markdown(f"**{category}**")
        count_col.caption(f"{len(held)}/{limit}")

        for index, document in enumerate(held):
            name_col, remove_col = st.columns([6, 1])
            icon = "🖼️" if document.is_image else "📄"
            name_col.markdown(f"{icon} {document.name}")
            if remove_col.button("✕", key=f"remove_{category}_{index}_{generation}", help="Remove file"):
                st.session_state["documents"][category] = documents.remove_document(held, index)
                st.rerun()

        notice = st.session_state["notices"].pop(category, None)
        if notice:
            st.warning(notice)

        if len(held) >= limit:
            return

        round_key = f"upload_round_{category}"
        upload_round = st.session_state.get(round_key, 0)
        uploads = st.file_uploader(
            "Click to upload",
            type=UPLOAD_TYPES,
            accept_multiple_files=True,
            key=f"uploader_{category}_{generation}_{upload_round}",
            label_visibility="collapsed",
        )
        if not uploads:
            return

        batch = [
            documents.UploadedDocument(name=upload.name, data=upload.getvalue(), mime_type=upload.type or "")
            for upload in uploads
        ]
        try:
            with st.spinner("Preparing documents…"):
                prepared = documents.prepare_documents(batch, category, settings)
        except documents.UnsupportedFileError as exc:
            st.session_state["notices"][category] = str(exc)
        else:
            combined, dropped = documents.add_documents(held, prepared, limit)
            st.session_state["documents"][category] = combined
            if dropped:
                st.session_state["notices"][category] = (
                    f"Only {limit} documents are allowed per category; {dropped} file(s) were not added."
                )
        # A fresh widget key clears the uploader so the same files are not added twice
        st.session_state[round_key] = upload_round + 1
        st.rerun()


def _run_analysis(settings: config.Settings, period_inputs: tuple[str, ...]) -> None:
    st.session_state["result"] = None
    try:
        period = _selected_period(period_inputs)
        all_documents = [document for held in st.session_state["documents"].values() for document in held]
        if not all_documents:
            raise analysis.AnalysisError("Please upload at least one document.")
        with st.spinner("Analyzing Documents…"):
            result = analysis.analyze_documents(
                period.label,
                all_documents,
                settings=settings,
                cache=_analysis_cache(settings.cache_size),
            )
    except (periods.PeriodError, analysis.AnalysisError) as exc:
        logger.warning("Analysis not run: %s", exc)
        st.session_state["error"] = str(exc)
        return
    st.session_state["error"] = None
    st.session_state["result"] = result


def _render_report(result: analysis.AnalysisResult, settings: config.Settings) -> None:
    error = report.validation_error(result)
    if error:
        st.error(f"**Validation Error**\n\n{error}", icon="⚠️")
        return

    note = report.validation_note(result)
    if note:
        st.info(note, icon="ℹ️")

    tabs = report.build_tabs(result)
    for container, tab in zip(st.tabs([tab.label for tab in tabs]), tabs):
        with container:
            title_col, download_col = st.columns([3, 1])
            title_col.markdown(f"## {tab.label}")
            download_col.download_button(
                "Download PDF",
                data=_pdf_bytes(tab.label, tab.content, settings.pdf_font_path) if tab.has_content else b"",
                file_name=tab.filename,
                mime="application/pdf",
                disabled=not tab.has_content,
                key=f"download_{tab.key}",
            )
            if not tab.has_content:
                st.caption(f"_{report.EMPTY_SECTION_TEXT}_")
                continue
            st.markdown(tab.content)
            if tab.key == "incomeAndExpense":
                frame = viz.income_expense_frame(tab.content)
                if not frame.empty:
                    totals = frame.groupby("kind")["amount"].sum()
                    income = float(totals.get("Income", 0.0))
                    expense = float(totals.get("Expense", 0.0))
                    metric_cols = st.columns(3)
                    metric_cols[0].metric("Listed income", utils.format_currency(income))
                    metric_cols[1].metric("Listed expenses", utils.format_currency(expense))
                    metric_cols[2].metric("Difference", utils.format_currency(income - expense))
                    st.plotly_chart(
                        viz.plot_income_vs_expense(frame),
                        use_container_width=True,
                        config={"displayModeBar": False},
                    )

    st.divider()
    st.download_button(
        "Download All Reports",
        data=_archive_bytes(
            tuple((tab.key, tab.label, tab.content) for tab in tabs), settings.pdf_font_path
        ),
        file_name=report.ARCHIVE_NAME,
        mime="application/zip",
        type="primary",
        disabled=not any(tab.has_content for tab in tabs),
    )


def main() -> None:
    """Render the Financial Analyzer Streamlit application."""

    st.set_page_config(
        page_title="My Financial Analyzer",
        page_icon="💰",
        layout="wide",
    )
    _init_state()

    try:
        settings = config.load_settings()
    except ValueError as exc:
        st.error(f"Configuration error: {exc}")
        st.stop()
    config.configure_logging(settings.log_level)

    header_col, refresh_col = st.columns([5, 1])
    header_col.title("My Financial Analyzer – Financial Assistant")
    if refresh_col.button("🔄 Refresh", use_container_width=True):
        _refresh()
        st.rerun()

    sidebar = st.sidebar
    sidebar.header("How to use")
    sidebar.write("1) Pick a month or a range of months.")
    sidebar.write("2) Upload statements and bills for that period.")
    sidebar.write("3) Click **Analyze My Finances** and download the reports you need.")
    sidebar.subheader("AI model")
    sidebar.caption(f"{settings.provider} · {settings.model}")
    if settings.api_key:
        sidebar.success("API key detected.")
    else:
        key_name = "GEMINI_API_KEY" if settings.provider == "gemini" else "OPENAI_API_KEY"
        sidebar.warning(f"No {key_name} found in Streamlit secrets or environment. Analysis is disabled.")

    input_col, output_col = st.columns([1, 2], gap="large")

    with input_col:
        period_inputs = _render_period_inputs()

        st.markdown("### ☁️ Upload Documents")
        st.caption(
            f"Upload up to {settings.max_files_per_category} documents per category for the selected period. "
            f"Valid file types: {documents.FILE_TYPE_HINT}."
        )
        for category in documents.CATEGORIES:
            _render_uploader(category, settings)

        if st.button("Analyze My Finances", type="primary", use_container_width=True):
            _run_analysis(settings, period_inputs)

        if st.session_state["error"]:
            st.error(st.session_state["error"])

        st.caption(
            "🔒 Your uploaded files are kept in memory for this session only and are never written to disk. "
            f"They are sent to the {settings.provider} API solely to generate your financial report."
        )

    with output_col:
        result = st.session_state["result"]
        if result:
            _render_report(result, settings)
        else:
            st.info(
                'Select a period, upload your financial documents, and click "Analyze My Finances" '
                "to get plain-language insights and actionable advice."
            )


if __name__ == "__main__":
    main()
