"""Calendar-month arithmetic.

All timeline computations work on whole calendar months. A ``YearMonth`` is
an ordered value; durations are plain integers of months. Parsing of the
``"YYYY-MM"`` wire format lives at the bottom of this module and is only used
at the request boundary.
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum


class ParseError(ValueError):
    """Raised when a boundary value cannot be parsed."""

    pass


class DateParseError(ParseError):
    """Raised when a date string is not a recognisable year-month."""

    pass


class Ordering(str, Enum):
    BEFORE = "before"
    EQUAL = "equal"
    AFTER = "after"


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month. Ordering follows calendar order."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in [1, 12], got {self.month}")

    def __str__(self) -> str:
        return format_year_month(self)


def months_between(a: YearMonth, b: YearMonth) -> int:
    """Return ``b - a`` in whole months (negative when ``b`` precedes ``a``)."""
    return (b.year - a.year) * 12 + (b.month - a.month)


def add_months(a: YearMonth, n: int) -> YearMonth:
    """Return the month ``n`` months after ``a`` (``n`` may be negative)."""
    index = a.year * 12 + (a.month - 1) + n
    return YearMonth(index // 12, index % 12 + 1)


def compare(a: YearMonth, b: YearMonth) -> Ordering:
    if a < b:
        return Ordering.BEFORE
    if a > b:
        return Ordering.AFTER
    return Ordering.EQUAL


def current_year_month(today: date | None = None) -> YearMonth:
    """Month containing ``today`` (defaults to the system date)."""
    today = today or date.today()
    return YearMonth(today.year, today.month)


# =============================================================================
# Boundary parsing / formatting
# =============================================================================

PRESENT_MARKERS = frozenset({"至今", "present", "now", "current"})

_YEAR_MONTH_RE = re.compile(r"^\s*(\d{4})\s*[-/.年]\s*(\d{1,2})\s*(?:月)?(?:[-/.]\s*\d{1,2})?\s*$")


def is_present_marker(text: str | None) -> bool:
    """True if ``text`` denotes an open-ended ("present") end date."""
    if text is None:
        return False
    return text.strip().lower() in PRESENT_MARKERS


def parse_year_month(text: str) -> YearMonth:
    """Parse ``"YYYY-MM"`` (also ``YYYY/MM``, ``YYYY.MM``, ``YYYY-MM-DD``).

    Raises:
        DateParseError: If the text is not a valid year-month.
    """
    match = _YEAR_MONTH_RE.match(text or "")
    if not match:
        raise DateParseError(f"Unrecognised year-month: {text!r}")
    try:
        return YearMonth(int(match.group(1)), int(match.group(2)))
    except ValueError as e:
        raise DateParseError(f"Unrecognised year-month: {text!r}") from e


def format_year_month(value: YearMonth) -> str:
    return f"{value.year:04d}-{value.month:02d}"
