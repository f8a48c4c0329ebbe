"""Tests for period selection and validation."""

from __future__ import annotations

from datetime import date

import pytest
from finance_assistant import periods

TODAY = date(2025, 6, 15)


def test_year_options_cover_three_years() -> None:
    assert periods.year_options(TODAY) == [2025, 2024, 2023]


def test_single_month_label_and_current_month_allowed() -> None:
    period = periods.single_month("June", "2025", today=TODAY)
    assert period.label == "June 2025"
    assert not period.is_range


@pytest.mark.parametrize("month, year", [("", "2025"), ("March", ""), (None, None)])
def test_single_month_requires_both_fields(month, year) -> None:
    with pytest.raises(periods.PeriodError, match="Please select both Month and Year."):
        periods.single_month(month, year, today=TODAY)


@pytest.mark.parametrize("month, year", [("July", 2025), ("January", 2026)])
def test_single_month_rejects_future(month, year) -> None:
    with pytest.raises(periods.PeriodError, match="Future Month/Year is not allowed."):
        periods.single_month(month, year, today=TODAY)


def test_unknown_month_is_rejected() -> None:
    with pytest.raises(periods.PeriodError):
        periods.single_month("Smarch", "2025", today=TODAY)


def test_month_range_label() -> None:
    period = periods.month_range("January", "2024", "March", "2025", today=TODAY)
    assert period.is_range
    assert period.label == "from January 2024 to March 2025"


def test_month_range_with_identical_endpoints_keeps_range_label() -> None:
    period = periods.month_range("May", "2025", "May", "2025", today=TODAY)
    assert period.label == "from May 2025 to May 2025"


def test_month_range_requires_all_fields() -> None:
    with pytest.raises(periods.PeriodError, match="Please select From and To Month and Year."):
        periods.month_range("January", "2025", "", "2025", today=TODAY)


def test_month_range_rejects_future_before_ordering() -> None:
    with pytest.raises(periods.PeriodError, match="Future Month/Year is not allowed."):
        periods.month_range("December", "2025", "January", "2025", today=TODAY)


def test_month_range_rejects_inverted_range() -> None:
    with pytest.raises(periods.PeriodError, match='"From" date cannot be after "To" date.'):
        periods.month_range("April", "2025", "February", "2025", today=TODAY)


def test_parse_month_year() -> None:
    assert periods.parse_month_year("March 2025") == ("March", "2025")
    with pytest.raises(periods.PeriodError):
        periods.parse_month_year("March")
