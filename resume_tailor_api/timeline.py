"""Work intervals and the merged, newest-first timeline."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from resume_tailor_api.calendar_math import (
    DateParseError,
    YearMonth,
    format_year_month,
    is_present_marker,
    months_between,
    parse_year_month,
)


class Origin(str, Enum):
    REAL = "real"  # reported by the user, timing is immutable
    SYNTHETIC = "synthetic"  # supplement segment


@dataclass(frozen=True)
class WorkInterval:
    """A work period. ``end=None`` means the interval is still running."""

    start: YearMonth
    end: YearMonth | None
    origin: Origin
    source_index: int | None = None

    def __post_init__(self) -> None:
        if self.end is not None and self.end < self.start:
            raise ValueError(f"interval ends before it starts: {self.start} > {self.end}")

    @property
    def is_open(self) -> bool:
        return self.end is None

    def effective_end(self, today: YearMonth) -> YearMonth:
        """End month, with an open interval measured up to ``today``."""
        return self.end if self.end is not None else today

    def span_months(self, today: YearMonth) -> int:
        return max(0, months_between(self.start, self.effective_end(today)))

    def describe_end(self, present_label: str = "至今") -> str:
        return format_year_month(self.end) if self.end is not None else present_label


def merge_timeline(
    real: Iterable[WorkInterval],
    synthetic: Iterable[WorkInterval],
) -> list[WorkInterval]:
    """Merge real and synthetic intervals, newest start first.

    The sort is stable: at an identical start month real intervals stay ahead
    of synthetic ones and otherwise keep their input order.
    """
    combined = list(real) + list(synthetic)
    return sorted(combined, key=lambda interval: interval.start, reverse=True)


def find_order_violations(start_dates: Sequence[str | None]) -> list[int]:
    """Return indices of entries whose start is later than the entry above them.

    Used to check that a generated experience list keeps newest-first order.
    Entries without a parseable start date are skipped.
    """
    violations = []
    previous: YearMonth | None = None
    for index, raw in enumerate(start_dates):
        if raw is None or is_present_marker(raw):
            continue
        try:
            start = parse_year_month(raw)
        except DateParseError:
            continue
        if previous is not None and start > previous:
            violations.append(index)
        previous = start
    return violations
