"""Visualization utilities for the Income and Expense section."""

from __future__ import annotations

import re

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from . import markdown_blocks, utils

KIND_COLORS = {"Income": "#2a9d8f", "Expense": "#e76f51"}
_TOTAL = re.compile(r"^\s*total\b", re.IGNORECASE)


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=20))
    return fig


def parse_amount_cell(cell: str) -> tuple[str, float] | None:
    """Split a ``"Salary: ₹50,000"`` style cell into its label and amount."""

    text = markdown_blocks.strip_inline(cell)
    if ":" not in text:
        return None
    label, _, value = text.partition(":")
    amount = utils.parse_amount(value)
    if not label.strip() or amount is None:
        return None
    return label.strip(), amount


def income_expense_frame(content: str) -> pd.DataFrame:
    """Tabulate the category cells of the two-column Income and Expense table.

    The Total row and cells that carry no amount are skipped.
    """

    columns = ["kind", "name", "amount"]
    table = next(
        (block.table for block in markdown_blocks.split_blocks(content or "") if block.table is not None),
        None,
    )
    if table is None:
        return pd.DataFrame(columns=columns)

    records = []
    for row in table.rows:
        for kind, cell in zip(("Income", "Expense"), row[:2]):
            parsed = parse_amount_cell(cell)
            if parsed is None or _TOTAL.match(parsed[0]):
                continue
            records.append({"kind": kind, "name": parsed[0], "amount": abs(parsed[1])})
    return pd.DataFrame(records, columns=columns)


def plot_income_vs_expense(frame: pd.DataFrame, currency: str = "₹") -> go.Figure:
    """Return a horizontal bar chart of income and expense categories."""

    if frame.empty:
        return _empty_figure("No categorised amounts found in this section.")

    df = frame.sort_values(["kind", "amount"], ascending=[False, True])
    fig = px.bar(
        df,
        x="amount",
        y="name",
        color="kind",
        orientation="h",
        color_discrete_map=KIND_COLORS,
        labels={"amount": "Amount", "name": "Category", "kind": ""},
        title="Income and expense categories",
    )
    fig.update_traces(hovertemplate=f"%{{y}}<br>{currency}%{{x:,.2f}}<extra></extra>")
    fig.update_xaxes(tickprefix=currency)
    fig.update_layout(
        margin=dict(l=0, r=0, t=45, b=0),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig
