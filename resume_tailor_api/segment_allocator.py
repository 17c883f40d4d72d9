"""Placement of synthetic supplement segments.

Supplement tenure is placed first into gaps between the user's real
intervals, then backwards from the earliest real interval, never reaching
further back than the legal-work-start floor. All bookkeeping is in whole
months.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from resume_tailor_api.calendar_math import YearMonth, add_months, months_between
from resume_tailor_api.timeline import Origin, WorkInterval

logger = structlog.get_logger()


@dataclass(frozen=True)
class AllocationPolicy:
    gap_threshold_months: int = 4
    max_segment_years: int = 3
    min_insert_years: float = 0.5

    @property
    def max_segment_months(self) -> int:
        return self.max_segment_years * 12

    @property
    def min_insert_months(self) -> int:
        return round(self.min_insert_years * 12)


@dataclass(frozen=True)
class SupplementSegment:
    """A closed synthetic period, as used in the generation prompt."""

    start: YearMonth
    end: YearMonth

    @property
    def interval(self) -> WorkInterval:
        return WorkInterval(start=self.start, end=self.end, origin=Origin.SYNTHETIC)

    @property
    def months(self) -> int:
        return months_between(self.start, self.end)

    @property
    def years(self) -> int:
        return self.months // 12


@dataclass(frozen=True)
class _Gap:
    after_end: YearMonth  # latest end among earlier-starting intervals
    before_start: YearMonth
    months: int


def find_gaps(
    real_intervals: Sequence[WorkInterval],
    today: YearMonth,
    threshold_months: int,
) -> list[_Gap]:
    """Gaps of at least ``threshold_months`` between consecutive real intervals."""
    ordered = sorted(real_intervals, key=lambda interval: interval.start)
    gaps = []
    if not ordered:
        return gaps

    boundary = ordered[0].effective_end(today)
    for interval in ordered[1:]:
        gap_months = months_between(boundary, interval.start)
        if gap_months >= threshold_months:
            gaps.append(_Gap(after_end=boundary, before_start=interval.start, months=gap_months))
        boundary = max(boundary, interval.effective_end(today))
    return gaps


def _fill_gaps(
    gaps: Sequence[_Gap],
    remaining_months: int,
    floor: YearMonth,
    policy: AllocationPolicy,
) -> tuple[list[SupplementSegment], int]:
    segments = []
    for gap in gaps:
        if remaining_months <= 0:
            break

        allotted = min(remaining_months, gap.months, policy.max_segment_months)
        if allotted < policy.min_insert_months:
            continue

        end = add_months(gap.before_start, -1)
        start = add_months(end, -allotted)
        start = max(start, add_months(gap.after_end, 1), floor)
        if start > end:
            continue

        segment = SupplementSegment(start, end)
        if segment.months <= 0:
            continue
        segments.append(segment)
        remaining_months -= segment.months
    return segments, remaining_months


def _extend_backward(
    earliest_start: YearMonth,
    remaining_months: int,
    floor: YearMonth,
    policy: AllocationPolicy,
) -> list[SupplementSegment]:
    segments = []
    boundary = earliest_start
    while remaining_months > 0:
        end = add_months(boundary, -1)
        if end < floor:
            break

        start = add_months(end, -min(remaining_months, policy.max_segment_months))
        if start < floor:
            # The floor is a hard stop: keep what fits and finish.
            segment = SupplementSegment(floor, end)
            if segment.months > 0:
                segments.append(segment)
            logger.info(
                "Supplement allocation reached legal-work-start floor",
                floor=str(floor),
                unmet_months=remaining_months - segment.months,
            )
            break

        segment = SupplementSegment(start, end)
        segments.append(segment)
        remaining_months -= segment.months
        boundary = start
    return segments


def allocate_segments(
    real_intervals: Sequence[WorkInterval],
    supplement_years: int,
    floor: YearMonth,
    today: YearMonth,
    policy: AllocationPolicy | None = None,
) -> list[SupplementSegment]:
    """Turn a supplement requirement into non-overlapping synthetic segments.

    Args:
        real_intervals: The user's real intervals, in any order.
        supplement_years: Whole years of tenure to fabricate.
        floor: Earliest month a synthetic segment may start.
        today: Month used as the end of open intervals.
        policy: Gap threshold, per-segment cap and minimum insert size.

    Returns:
        Segments in allocation order (gap segments first, then backward ones).
        Their total length never exceeds ``supplement_years`` and may be less
        when the floor is reached.
    """
    policy = policy or AllocationPolicy()
    if supplement_years <= 0 or not real_intervals:
        return []

    remaining = supplement_years * 12
    gaps = find_gaps(real_intervals, today, policy.gap_threshold_months)
    segments, remaining = _fill_gaps(gaps, remaining, floor, policy)

    if remaining > 0:
        earliest = min(interval.start for interval in real_intervals)
        segments.extend(_extend_backward(earliest, remaining, floor, policy))

    logger.info(
        "Supplement segments allocated",
        requested_months=supplement_years * 12,
        allocated_months=sum(segment.months for segment in segments),
        segments=len(segments),
        gaps_considered=len(gaps),
    )
    return segments
