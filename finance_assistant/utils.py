"""Shared utilities for the Financial Analyzer."""

from __future__ import annotations

import re

_AMOUNT = re.compile(r"(-?\d[\d,]*(?:\.\d+)?)\s*([kKmM]|lakh|lakhs|cr|crore)?\b")
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "lakh": 100_000, "lakhs": 100_000, "cr": 10_000_000, "crore": 10_000_000}


def parse_amount(text: str) -> float | None:
    """Return the first monetary amount in ``text`` (``"₹1,50,000"`` -> 150000.0)."""

    match = _AMOUNT.search(text)
    if not match:
        return None

    number = match.group(1)
    negative = number.startswith("-")
    value = float(number.lstrip("-").replace(",", "").rstrip(","))
    suffix = (match.group(2) or "").lower()
    value *= _MULTIPLIERS.get(suffix, 1)
    return -value if negative else value


def format_currency(value: float, currency: str = "₹") -> str:
    """Return a human-readable currency string."""

    return f"{currency}{value:,.2f}"
