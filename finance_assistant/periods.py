"""Analysis period selection and validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

YEARS_OFFERED = 3


class PeriodError(ValueError):
    """Raised when the selected period cannot be analysed."""


@dataclass(frozen=True)
class Period:
    """A single month or an inclusive range of months.

    A range whose endpoints coincide keeps its range label.
    """

    start_month: int
    start_year: int
    end_month: int
    end_year: int
    is_range: bool = False

    @property
    def label(self) -> str:
        start = f"{MONTHS[self.start_month - 1]} {self.start_year}"
        if not self.is_range:
            return start
        return f"from {start} to {MONTHS[self.end_month - 1]} {self.end_year}"


def year_options(today: date | None = None) -> list[int]:
    """Return the selectable years, most recent first."""

    today = today or date.today()
    return [today.year - offset for offset in range(YEARS_OFFERED)]


def _month_number(month: str) -> int:
    try:
        return MONTHS.index(month.strip().title()) + 1
    except ValueError as exc:
        raise PeriodError(f"Unknown month: {month!r}.") from exc


def _year_number(year: str | int) -> int:
    try:
        return int(year)
    except (TypeError, ValueError) as exc:
        raise PeriodError(f"Unknown year: {year!r}.") from exc


def _is_future(month: int, year: int, today: date) -> bool:
    return (year, month) > (today.year, today.month)


def single_month(month: str | None, year: str | int | None, today: date | None = None) -> Period:
    """Validate a Single Month selection."""

    if not month or not year:
        raise PeriodError("Please select both Month and Year.")

    today = today or date.today()
    month_number = _month_number(month)
    year_number = _year_number(year)
    if _is_future(month_number, year_number, today):
        raise PeriodError("Future Month/Year is not allowed.")
    return Period(month_number, year_number, month_number, year_number)


def month_range(
    from_month: str | None,
    from_year: str | int | None,
    to_month: str | None,
    to_year: str | int | None,
    today: date | None = None,
) -> Period:
    """Validate a Date Range selection."""

    if not from_month or not from_year or not to_month or not to_year:
        raise PeriodError("Please select From and To Month and Year.")

    today = today or date.today()
    start = (_year_number(from_year), _month_number(from_month))
    end = (_year_number(to_year), _month_number(to_month))

    if _is_future(start[1], start[0], today) or _is_future(end[1], end[0], today):
        raise PeriodError("Future Month/Year is not allowed.")
    if start > end:
        raise PeriodError('"From" date cannot be after "To" date.')
    return Period(start[1], start[0], end[1], end[0], is_range=True)


def parse_month_year(text: str) -> tuple[str, str]:
    """Split ``"March 2025"`` into its month and year parts."""

    parts = text.split()
    if len(parts) != 2:
        raise PeriodError(f"Expected '<Month> <Year>', received: {text!r}.")
    return parts[0], parts[1]
