"""
Formatting helpers for terminal output.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

_COMPACT_UNITS = ["", "K", "M", "B", "T"]
_TENTH = Decimal("0.1")


def _as_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    # API timestamps may carry a trailing Z
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_date(value: datetime | str) -> str:
    """January 5, 2025"""
    d = _as_datetime(value)
    return f"{d:%B} {d.day}, {d.year}"


def format_datetime(value: datetime | str) -> str:
    """Jan 5, 2025, 02:30 PM"""
    d = _as_datetime(value)
    return f"{d:%b} {d.day}, {d.year}, {d:%I:%M %p}"


def format_currency(amount: float, symbol: str = "$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def compact_number(num: float) -> str:
    """1234 -> 1.2K, 1500000 -> 1.5M, 999950 -> 1M"""
    value = Decimal(str(num))
    unit = 0
    shown = value.quantize(_TENTH, rounding=ROUND_HALF_UP)
    # Rounding can carry into the next unit
    while abs(shown) >= 1000 and unit < len(_COMPACT_UNITS) - 1:
        value /= 1000
        unit += 1
        shown = value.quantize(_TENTH, rounding=ROUND_HALF_UP)
    text = f"{shown:f}".rstrip("0").rstrip(".")
    return f"{text}{_COMPACT_UNITS[unit]}"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def capitalize(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def signed(value: int) -> str:
    """Score deltas are always shown with a sign: +3, -2, +0."""
    return f"{value:+d}"
