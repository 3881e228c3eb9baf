"""
Generation of fixed-length slots from a working window.

Pure functions only: the current time is always passed in as ``now`` so that
results are deterministic for a given input.
"""

import math
from datetime import date
from typing import List, Optional

from pendulum import DateTime

from .exceptions import SlotValidationError
from .models import PastDatePolicy, Slot, TimeRange, WorkingWindow
from .time_arithmetic import minutes_of_day, parse_time, to_minutes

MIN_SLOT_DURATION = 5
MAX_SLOT_DURATION = 120
MAX_GRACE_PERIOD = 60


def effective_step(slot_duration: int, buffer_minutes: int = 0) -> int:
    """Distance between two slot starts when a buffer separates them."""
    return slot_duration + buffer_minutes


def generate_time_slots(
    start_minutes: int,
    end_minutes: int,
    slot_duration: int,
    step: Optional[int] = None,
) -> List[TimeRange]:
    """
    Cut a window into slots of exactly ``slot_duration`` minutes.

    A trailing remainder shorter than ``slot_duration`` is dropped. With the
    default step the slots are contiguous.

    Example:
    Window: 09:00 - 10:15, duration 30
    Result: [09:00-09:30, 09:30-10:00]
    """
    if slot_duration <= 0:
        raise ValueError(f"slot_duration must be positive, got {slot_duration}")
    step = step or slot_duration

    slots: List[TimeRange] = []
    t = start_minutes
    while t + slot_duration <= end_minutes:
        slots.append(TimeRange(start=t, end=t + slot_duration))
        t += step

    return slots


def _align_to_next_slot(minutes: int, slot_duration: int) -> int:
    # Boundaries are multiples of the duration counted from midnight
    return math.ceil(minutes / slot_duration) * slot_duration


def adjust_window_for_now(
    window: WorkingWindow,
    slot_duration: int,
    now: DateTime,
    grace_period: int = 0,
) -> Optional[WorkingWindow]:
    """Minute-based core of ``adjust_for_today``."""
    now_minutes = minutes_of_day(now) + grace_period

    if now_minutes >= window.end:
        return None

    adjusted_start = window.start
    if now_minutes > window.start:
        adjusted_start = _align_to_next_slot(now_minutes, slot_duration)

    if adjusted_start >= window.end:
        return None

    return WorkingWindow(start=adjusted_start, end=window.end)


def adjust_for_today(
    start_time: str,
    end_time: str,
    slot_duration: int,
    now: DateTime,
    grace_period: int = 0,
) -> Optional[WorkingWindow]:
    """
    Trim today's working window so it starts at the next slot boundary after
    ``now + grace_period``.

    Returns:
        The adjusted window, or None when nothing is left today
    """
    window = WorkingWindow(start=to_minutes(start_time), end=to_minutes(end_time))
    return adjust_window_for_now(window, slot_duration, now, grace_period)


def resolve_window_for_date(
    day: date,
    window: WorkingWindow,
    slot_duration: int,
    now: DateTime,
    grace_period: int = 0,
    past_dates: PastDatePolicy = PastDatePolicy.ALLOW,
) -> Optional[WorkingWindow]:
    """
    Decide which part of a working window is still offerable on ``day``.

    Today is trimmed by the current time; past dates follow ``past_dates``;
    future dates are returned unchanged.
    """
    if window.is_empty:
        return None

    today = now.date()
    if day == today:
        return adjust_window_for_now(window, slot_duration, now, grace_period)

    if day < today and past_dates is PastDatePolicy.EXCLUDE:
        return None

    return window


def get_available_slots_for_date(
    day: date,
    start_time: str,
    end_time: str,
    slot_duration: int,
    grace_period: int = 0,
    *,
    now: DateTime,
    past_dates: PastDatePolicy = PastDatePolicy.ALLOW,
) -> List[Slot]:
    """
    Produce the available slots of one working window on one date.

    Args:
        day: Calendar date to generate for
        start_time: Window opening as "HH:mm"
        end_time: Window closing as "HH:mm"
        slot_duration: Length of each slot in minutes
        grace_period: Minutes added to ``now`` before trimming today
        now: Reference time; "today" is ``now.date()``
        past_dates: Policy for dates before today

    Returns:
        Ordered, contiguous slots with status ``available``
    """
    window = WorkingWindow(start=to_minutes(start_time), end=to_minutes(end_time))
    resolved = resolve_window_for_date(
        day, window, slot_duration, now, grace_period, past_dates
    )
    if resolved is None:
        return []

    return [
        Slot(date=day, start=tr.start, end=tr.end)
        for tr in generate_time_slots(resolved.start, resolved.end, slot_duration)
    ]


def validate_generation_params(
    start_time: str,
    end_time: str,
    slot_duration: int,
    grace_period: int = 0,
) -> None:
    """
    Reject malformed boundary input before any generation runs.

    Raises:
        SlotValidationError: If a time, the duration or the grace period is invalid
    """
    parse_time(start_time)
    parse_time(end_time)

    if not MIN_SLOT_DURATION <= slot_duration <= MAX_SLOT_DURATION:
        raise SlotValidationError(
            f"Slot duration must be between {MIN_SLOT_DURATION} and "
            f"{MAX_SLOT_DURATION} minutes, got {slot_duration}"
        )

    if not 0 <= grace_period <= MAX_GRACE_PERIOD:
        raise SlotValidationError(
            f"Grace period must be between 0 and {MAX_GRACE_PERIOD} minutes, got {grace_period}"
        )


def get_slots_safe(
    day: date,
    start_time: str,
    end_time: str,
    slot_duration: int,
    grace_period: int = 0,
    *,
    now: DateTime,
    past_dates: PastDatePolicy = PastDatePolicy.ALLOW,
) -> List[Slot]:
    """``get_available_slots_for_date`` behind boundary validation."""
    if not isinstance(day, date):
        raise SlotValidationError("Invalid date")
    validate_generation_params(start_time, end_time, slot_duration, grace_period)
    return get_available_slots_for_date(
        day,
        start_time,
        end_time,
        slot_duration,
        grace_period,
        now=now,
        past_dates=past_dates,
    )
