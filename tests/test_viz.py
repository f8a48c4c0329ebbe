"""Tests for the income/expense chart helpers."""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go
import pytest
from finance_assistant import utils, viz

TABLE = """| Saving/Income Categories & Values | Expenses Categories & Values |
|---|---|
| Salary: ₹50,000 | Loan Payment: ₹15,000 |
| Interest: ₹1,000.50 | House Maintenance: ₹5,000 |
| | Education: ₹8,000 |
| **Total Income: ₹51,000.50** | **Total Expenses: ₹28,000** |
"""


@pytest.mark.parametrize(
    "text, expected",
    [
        ("₹50,000", 50_000.0),
        ("Rs. 1,50,000.75", 150_000.75),
        ("$2.5k", 2_500.0),
        ("-300", -300.0),
        ("₹2 lakh", 200_000.0),
        ("nothing here", None),
    ],
)
def test_parse_amount(text: str, expected: float | None) -> None:
    assert utils.parse_amount(text) == expected


def test_format_currency() -> None:
    assert utils.format_currency(51000.5) == "₹51,000.50"
    assert utils.format_currency(12, "£") == "£12.00"


def test_parse_amount_cell() -> None:
    assert viz.parse_amount_cell("**Salary: ₹50,000**") == ("Salary", 50_000.0)
    assert viz.parse_amount_cell("Salary") is None
    assert viz.parse_amount_cell("Bonus: pending") is None


def test_income_expense_frame_skips_totals_and_blanks() -> None:
    frame = viz.income_expense_frame(TABLE)
    expected = pd.DataFrame(
        [
            {"kind": "Income", "name": "Salary", "amount": 50_000.0},
            {"kind": "Expense", "name": "Loan Payment", "amount": 15_000.0},
            {"kind": "Income", "name": "Interest", "amount": 1_000.5},
            {"kind": "Expense", "name": "House Maintenance", "amount": 5_000.0},
            {"kind": "Expense", "name": "Education", "amount": 8_000.0},
        ]
    )
    pd.testing.assert_frame_equal(frame, expected)


def test_income_expense_frame_without_table_is_empty() -> None:
    frame = viz.income_expense_frame("No table in this answer.")
    assert frame.empty
    assert list(frame.columns) == ["kind", "name", "amount"]


def test_plot_income_vs_expense_returns_fig() -> None:
    figure = viz.plot_income_vs_expense(viz.income_expense_frame(TABLE))
    assert isinstance(figure, go.Figure)
    assert {trace.name for trace in figure.data} == {"Income", "Expense"}

    empty = viz.plot_income_vs_expense(viz.income_expense_frame(""))
    assert isinstance(empty, go.Figure)
    assert not empty.data
