"""
Half-open time range arithmetic on a single calendar day.

Times are handled as minutes since midnight. An end time of 00:00 always
means "end of day" (minute 1440), so a booking may finish exactly at
midnight without wrapping into the next day.
"""

from __future__ import annotations

from datetime import time
from typing import Iterable, Iterator, List, NamedTuple

from .constants import MINUTES_PER_DAY


class TimeRange(NamedTuple):
    """A half-open ``[start, end)`` range in minutes since midnight."""

    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return ranges_overlap(self.start, self.end, other.start, other.end)

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(value: int) -> time:
    """Convert minutes since midnight to a ``time``; 1440 maps back to 00:00."""
    if value < 0 or value > MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a single day: {value}")
    if value == MINUTES_PER_DAY:
        return time(0, 0)
    return time(value // 60, value % 60)


def end_minutes(end: time) -> int:
    """Minutes for an end time, treating 00:00 as end of day."""
    end_value = time_to_minutes(end)
    if end_value == 0:
        return MINUTES_PER_DAY
    return end_value


def to_range(start: time, end: time) -> TimeRange:
    return TimeRange(time_to_minutes(start), end_minutes(end))


def add_minutes(start: time, minutes: int) -> time:
    """
    Return ``start + minutes`` on the same day.

    Raises:
        ValueError: if the result would run past midnight
    """
    total = time_to_minutes(start) + minutes
    if total > MINUTES_PER_DAY:
        raise ValueError("Time range extends past midnight")
    return minutes_to_time(total)


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Strict half-open overlap: touching endpoints do not overlap."""
    return start1 < end2 and start2 < end1


def merge_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """Union of ranges, sorted; adjacent ranges are joined."""
    ordered = sorted(r for r in ranges if r.end > r.start)
    merged: List[TimeRange] = []
    for current in ordered:
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def subtract_ranges(base: Iterable[TimeRange], blocked: Iterable[TimeRange]) -> List[TimeRange]:
    """Remove every blocked range from the base ranges."""
    remaining = merge_ranges(base)
    for cut in merge_ranges(blocked):
        next_remaining: List[TimeRange] = []
        for free in remaining:
            if not free.overlaps(cut):
                next_remaining.append(free)
                continue
            if free.start < cut.start:
                next_remaining.append(TimeRange(free.start, cut.start))
            if cut.end < free.end:
                next_remaining.append(TimeRange(cut.end, free.end))
        remaining = next_remaining
    return remaining


def iter_slot_starts(
    working: Iterable[TimeRange],
    free: Iterable[TimeRange],
    duration: int,
    step: int,
) -> Iterator[int]:
    """
    Yield start minutes on the ``step`` grid of each working range whose
    ``[s, s + duration)`` fits inside a single free range.
    """
    if duration <= 0 or step <= 0:
        raise ValueError("duration and step must be positive")
    free_ranges = merge_ranges(free)
    seen = set()
    for window in merge_ranges(working):
        candidate = window.start
        while candidate + duration <= window.end:
            wanted = TimeRange(candidate, candidate + duration)
            if candidate not in seen and any(f.contains(wanted) for f in free_ranges):
                seen.add(candidate)
                yield candidate
            candidate += step
