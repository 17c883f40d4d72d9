"""Tenure requirement parsing and gap analysis.

Decides how many years of supplement tenure a profile needs to reach the
minimum experience a target job asks for.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from resume_tailor_api.calendar_math import YearMonth

UNBOUNDED_YEARS = 999

_RANGE_RE = re.compile(r"(\d+)\s*[-~～–—至到]\s*(\d+)\s*(?:年|years?|yrs?)", re.IGNORECASE)
_AT_LEAST_RE = re.compile(r"(\d+)\s*(?:年以上|\+\s*(?:years?|yrs?)|\s*years?\s*(?:or more|and above))", re.IGNORECASE)
_BIRTH_YEAR_RE = re.compile(r"^\s*(\d{4})")


@dataclass(frozen=True)
class TenureRequirement:
    minimum_years: int = 0
    maximum_years: int = UNBOUNDED_YEARS


def parse_experience_requirement(text: str | None) -> TenureRequirement:
    """Parse a free-text experience requirement.

    ``"5-10年"`` -> (5, 10), ``"5年以上"`` -> (5, unbounded). Unrecognised
    text yields the permissive default (0, unbounded); this never raises.
    """
    if not text:
        return TenureRequirement()

    match = _RANGE_RE.search(text)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        return TenureRequirement(minimum_years=min(low, high), maximum_years=max(low, high))

    match = _AT_LEAST_RE.search(text)
    if match:
        return TenureRequirement(minimum_years=int(match.group(1)))

    return TenureRequirement()


def birth_year_from(birthday: str | None, default: int) -> int:
    """Leading four-digit year of a birthday string, or ``default``."""
    match = _BIRTH_YEAR_RE.match(birthday or "")
    return int(match.group(1)) if match else default


def legal_work_start_floor(birth_year: int, legal_work_age: int = 19, start_month: int = 7) -> YearMonth:
    """Earliest month any synthetic tenure may begin."""
    return YearMonth(birth_year + legal_work_age, start_month)


@dataclass(frozen=True)
class GapAnalysis:
    actual_tenure_months: int
    supplement_years_needed: int
    requirement: TenureRequirement

    @property
    def actual_years(self) -> int:
        return self.actual_tenure_months // 12

    @property
    def actual_remainder_months(self) -> int:
        return self.actual_tenure_months % 12

    @property
    def needs_supplement(self) -> bool:
        return self.supplement_years_needed > 0


def analyze_gap(
    real_intervals: Iterable,
    requirement: TenureRequirement,
    today: YearMonth,
) -> GapAnalysis:
    """Sum real tenure and compare it to the requirement's minimum.

    Args:
        real_intervals: ``WorkInterval`` objects reported by the user.
        requirement: Parsed job requirement.
        today: Month used as the end of any open interval.
    """
    total = sum(interval.span_months(today) for interval in real_intervals)
    needed = max(0, requirement.minimum_years - total // 12)
    return GapAnalysis(
        actual_tenure_months=total,
        supplement_years_needed=needed,
        requirement=requirement,
    )
