"""
Conversions between "HH:mm" wall-clock strings and minutes since midnight.
"""

import re
from datetime import datetime

from .exceptions import InvalidTimeError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def to_minutes(time: str) -> int:
    """
    Convert "HH:mm" to minutes since midnight.

    No validation is performed; use ``parse_time`` for untrusted input.
    """
    hours, minutes = time.split(":")
    return int(hours) * 60 + int(minutes)


def to_time_string(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:mm"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(time: str, delta: int) -> str:
    """Add ``delta`` minutes to a time string, wrapping around midnight."""
    total = (to_minutes(time) + delta) % MINUTES_PER_DAY
    return to_time_string(total)


def is_valid_time(value: str) -> bool:
    """Check that a value is a well-formed "HH:mm" time of day."""
    if not isinstance(value, str) or not _TIME_PATTERN.match(value):
        return False
    hours, minutes = value.split(":")
    return int(hours) < 24 and int(minutes) < 60


def parse_time(value: str) -> int:
    """
    Validate and convert a time string.

    Raises:
        InvalidTimeError: If the value is not a valid "HH:mm" time
    """
    if not is_valid_time(value):
        raise InvalidTimeError(f"Time must be in HH:mm format, got {value!r}")
    return to_minutes(value)


def minutes_of_day(moment: datetime) -> int:
    """Return the wall-clock minutes since midnight of a datetime."""
    return moment.hour * 60 + moment.minute
