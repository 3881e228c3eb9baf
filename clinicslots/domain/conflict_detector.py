"""
Conflict detection for proposed bookings and date ranges.

Conflicts are returned, never raised: callers display them and decide.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .models import BreakPeriod, ConflictResult, Slot, SlotStatus, TimeRange
from .time_arithmetic import MINUTES_PER_DAY, add_minutes, to_minutes

PAST_TIME_MESSAGE = "Cannot schedule appointments in the past"
INVALID_RANGE_MESSAGE = "Start date must be before end date"
PAST_START_MESSAGE = "Start date is in the past"


def times_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open overlap test; ranges that only touch do not overlap."""
    return start1 < end2 and end1 > start2


def slot_end_datetime(day: date, end_minutes: int, now: DateTime) -> DateTime:
    """
    Absolute end of a slot on ``day`` in the timezone of ``now``.

    Minutes are wall-clock minutes, so the result stays correct on days with a
    daylight saving change. An end of 1440 is midnight of the next day.
    """
    if end_minutes >= MINUTES_PER_DAY:
        return pendulum.datetime(day.year, day.month, day.day, tz=now.tzinfo).add(days=1)
    hour, minute = divmod(end_minutes, 60)
    return pendulum.datetime(day.year, day.month, day.day, hour, minute, tz=now.tzinfo)


class ConflictDetector:
    """
    Classifies overlaps between a proposed range and a doctor's day.

    Hard conflicts: the range ends in the past, or it overlaps a booked slot,
    a blocked slot or a break. Warnings: it overlaps a slot that is merely
    available.
    """

    def check_slot_conflicts(
        self,
        new_range: TimeRange,
        existing_slots: Sequence[Slot],
        day: date,
        breaks: Optional[Iterable[BreakPeriod]] = None,
        *,
        now: DateTime,
    ) -> ConflictResult:
        """
        Check a proposed range against existing slots and breaks on ``day``.

        Args:
            new_range: The range to add or book
            existing_slots: Persisted slots for the same doctor and date
            day: Date of the proposed range
            breaks: Optional break periods for the day
            now: Reference time for the past check

        Returns:
            ConflictResult with hard conflicts and advisory warnings
        """
        result = ConflictResult()

        if slot_end_datetime(day, new_range.end, now) < now:
            result.conflicts.append(PAST_TIME_MESSAGE)

        collapsed = self._collapse_by_range(existing_slots)
        hard_ranges = [
            slot.time_range for slot in collapsed
            if slot.status.is_hard and slot.time_range.overlaps(new_range)
        ]

        for slot in collapsed:
            if not times_overlap(new_range.start, new_range.end, slot.start, slot.end):
                continue

            if slot.status is SlotStatus.BOOKED:
                result.conflicts.append(
                    f"Overlaps with booked appointment at {slot.start_time}-{slot.end_time}"
                )
            elif slot.status is SlotStatus.BLOCKED:
                result.conflicts.append(
                    f"Overlaps with blocked time at {slot.start_time}-{slot.end_time}"
                )
            else:
                region = new_range.intersect(slot.time_range)
                # Already reported as a hard conflict for the whole region
                if self._is_covered(region, hard_ranges):
                    continue
                result.warnings.append(
                    f"Overlaps with available slot at {slot.start_time}-{slot.end_time}"
                )

        for period in breaks or ():
            if times_overlap(new_range.start, new_range.end, period.start, period.end):
                result.conflicts.append(
                    f"Overlaps with break time {period.start_time}-{period.end_time}"
                )

        return result

    def check_reschedule_conflicts(
        self,
        appointment_id: str,
        new_date: date,
        new_time: str,
        duration: int,
        existing_slots: Sequence[Slot],
        breaks: Optional[Iterable[BreakPeriod]] = None,
        *,
        now: DateTime,
    ) -> ConflictResult:
        """Check moving an appointment, ignoring the slot it currently holds."""
        start = to_minutes(new_time)
        end = to_minutes(add_minutes(new_time, duration))
        if end <= start:
            return ConflictResult(
                conflicts=[f"Appointment at {new_time} cannot cross midnight"]
            )

        other_slots = [s for s in existing_slots if s.appointment_id != appointment_id]

        return self.check_slot_conflicts(
            TimeRange(start=start, end=end),
            other_slots,
            new_date,
            breaks,
            now=now,
        )

    def validate_date_range(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        *,
        now: DateTime,
    ) -> ConflictResult:
        """Validate a multi-day range used for templates and bulk updates."""
        result = ConflictResult()

        if start_date and end_date and start_date > end_date:
            result.conflicts.append(INVALID_RANGE_MESSAGE)

        if start_date and start_date < now.date():
            result.warnings.append(PAST_START_MESSAGE)

        return result

    def check_multiple_slot_conflicts(self, ranges: Sequence[TimeRange]) -> ConflictResult:
        """Report every pair of proposed ranges that overlap each other."""
        result = ConflictResult()

        for i, first in enumerate(ranges):
            for j in range(i + 1, len(ranges)):
                second = ranges[j]
                if first.overlaps(second):
                    result.conflicts.append(
                        f"Slot {i + 1} ({first}) overlaps with Slot {j + 1} ({second})"
                    )

        return result

    @staticmethod
    def _is_covered(region: TimeRange, ranges: Sequence[TimeRange]) -> bool:
        """Check that the union of ``ranges`` covers every minute of ``region``."""
        reached = region.start
        for current in sorted(ranges, key=lambda r: r.start):
            if current.start > reached:
                break
            reached = max(reached, current.end)
            if reached >= region.end:
                return True
        return reached >= region.end

    @staticmethod
    def _collapse_by_range(slots: Sequence[Slot]) -> List[Slot]:
        """
        Keep one entry per range, the one with the strongest status.

        Order of first appearance is preserved.
        """
        by_range: Dict[Tuple[int, int], Slot] = {}
        for slot in slots:
            current = by_range.get(slot.key)
            if current is None or slot.status.precedence > current.status.precedence:
                by_range[slot.key] = slot
        return list(by_range.values())
