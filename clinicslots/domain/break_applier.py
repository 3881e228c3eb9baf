"""
Exclusion of slots that touch a break period.
"""

from typing import Iterable, List, Sequence, TypeVar

from .models import BreakPeriod, Slot, TimeRange

SlotLike = TypeVar("SlotLike", TimeRange, Slot)


def merge_breaks(breaks: Iterable[BreakPeriod]) -> List[TimeRange]:
    """
    Merge overlapping or adjacent breaks into their union.

    Example: [12:00-12:30, 12:15-13:00, 13:00-13:15] -> [12:00-13:15]
    """
    ranges = sorted((b.time_range for b in breaks), key=lambda r: r.start)
    if not ranges:
        return []

    merged: List[TimeRange] = [ranges[0]]
    for current in ranges[1:]:
        last = merged[-1]
        if current.start <= last.end:
            merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


def apply_breaks(slots: Sequence[SlotLike], breaks: Iterable[BreakPeriod]) -> List[SlotLike]:
    """
    Drop every slot that overlaps a break, even partially.

    Slots are never shortened to fit around a break.
    """
    blocked = merge_breaks(breaks)
    if not blocked:
        return list(slots)

    return [
        slot for slot in slots
        if not any(_range_of(slot).overlaps(period) for period in blocked)
    ]


def _range_of(slot) -> TimeRange:
    if isinstance(slot, TimeRange):
        return slot
    return slot.time_range
