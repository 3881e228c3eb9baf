"""
Domain models for working windows, breaks, slots and templates.

Times of day are stored as integer minutes since midnight; the "HH:mm"
representation only appears at the edges (``start_time``/``end_time``
properties and ``to_dict``).
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .time_arithmetic import MINUTES_PER_DAY, to_time_string


class SlotStatus(str, Enum):
    """Status of a persisted slot."""
    AVAILABLE = "available"
    BLOCKED = "blocked"
    BOOKED = "booked"

    @property
    def precedence(self) -> int:
        """Merge precedence: booked > blocked > available."""
        return _PRECEDENCE[self]

    @property
    def is_hard(self) -> bool:
        """Whether an overlap with this status disqualifies a booking."""
        return self is not SlotStatus.AVAILABLE

    @classmethod
    def strongest(cls, *statuses: "SlotStatus") -> "SlotStatus":
        """Return the status that wins when sources overlap."""
        return max(statuses, key=lambda status: status.precedence)


_PRECEDENCE = {
    SlotStatus.AVAILABLE: 0,
    SlotStatus.BLOCKED: 1,
    SlotStatus.BOOKED: 2,
}


class PastDatePolicy(str, Enum):
    """
    What slot generation does for dates before today.

    ALLOW returns the full working window (no filtering); EXCLUDE returns
    no slots at all.
    """
    ALLOW = "allow"
    EXCLUDE = "exclude"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open range ``[start, end)`` of minutes.

    Invariant: start must be before end, both within a single day.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < MINUTES_PER_DAY or not 0 < self.end <= MINUTES_PER_DAY:
            raise ValueError(f"Time range {self.start}-{self.end} is outside of a day")
        if self.start >= self.end:
            raise ValueError(
                f"Start time {to_time_string(self.start)} must be before "
                f"end time {to_time_string(self.end)}"
            )

    @property
    def start_time(self) -> str:
        return to_time_string(self.start)

    @property
    def end_time(self) -> str:
        return to_time_string(self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ends do not."""
        return self.start < other.end and self.end > other.start

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None
        return TimeRange(start=max(self.start, other.start), end=min(self.end, other.end))

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start_time, "end": self.end_time}

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class WorkingWindow:
    """
    A day's working window in minutes.

    Unlike TimeRange an inverted window is allowed; it simply yields no slots.
    """
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def __str__(self) -> str:
        return f"{to_time_string(self.start)}-{to_time_string(self.end)}"


@dataclass(frozen=True)
class BreakPeriod:
    """A period during the day in which no slot may be offered (e.g. lunch)."""
    start: int
    end: int
    label: Optional[str] = None

    def __post_init__(self):
        # Reuse the range invariant
        TimeRange(self.start, self.end)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    @property
    def start_time(self) -> str:
        return to_time_string(self.start)

    @property
    def end_time(self) -> str:
        return to_time_string(self.end)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class Slot:
    """A bookable interval on a given date."""
    date: date
    start: int
    end: int
    status: SlotStatus = SlotStatus.AVAILABLE
    appointment_id: Optional[str] = None
    blocked_reason: Optional[str] = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)

    @property
    def start_time(self) -> str:
        return to_time_string(self.start)

    @property
    def end_time(self) -> str:
        return to_time_string(self.end)

    @property
    def key(self) -> Tuple[int, int]:
        """Identity of a slot within one doctor's day."""
        return (self.start, self.end)

    def with_status(
        self,
        status: SlotStatus,
        appointment_id: Optional[str] = None,
        blocked_reason: Optional[str] = None,
    ) -> "Slot":
        return replace(
            self,
            status=status,
            appointment_id=appointment_id if status is SlotStatus.BOOKED else None,
            blocked_reason=blocked_reason if status is SlotStatus.BLOCKED else None,
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        data: Dict[str, Optional[str]] = {
            "date": self.date.isoformat(),
            "start": self.start_time,
            "end": self.end_time,
            "status": self.status.value,
        }
        if self.appointment_id:
            data["appointmentId"] = self.appointment_id
        if self.blocked_reason:
            data["reason"] = self.blocked_reason
        return data

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.start_time}-{self.end_time} ({self.status.value})"


@dataclass(frozen=True)
class AvailabilityTemplate:
    """
    A reusable weekly availability pattern.

    ``working_days`` holds weekday indices with 0 = Sunday ... 6 = Saturday.
    """
    name: str
    working_days: Tuple[int, ...]
    start: int
    end: int
    slot_duration: int = 30
    buffer_minutes: int = 0
    breaks: Tuple[BreakPeriod, ...] = ()
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    is_default: bool = False
    id: Optional[str] = None
    doctor_id: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        invalid_days = [day for day in self.working_days if day not in range(7)]
        if invalid_days:
            raise ValueError(f"working_days must be between 0 and 6, got {invalid_days}")
        if not 5 <= self.slot_duration <= 120:
            raise ValueError(f"slot_duration must be between 5 and 120, got {self.slot_duration}")
        if not 0 <= self.buffer_minutes <= 60:
            raise ValueError(f"buffer_minutes must be between 0 and 60, got {self.buffer_minutes}")

    def is_working_day(self, day: date) -> bool:
        """Check if a date falls on one of the template's working days."""
        return weekday_index(day) in self.working_days

    def is_valid_on(self, day: date) -> bool:
        """Check the optional validity period."""
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_to and day > self.valid_to:
            return False
        return True

    @property
    def window(self) -> WorkingWindow:
        return WorkingWindow(self.start, self.end)


@dataclass
class ConflictResult:
    """
    Outcome of a conflict check.

    ``conflicts`` are disqualifying, ``warnings`` are advisory only.
    """
    conflicts: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return len(self.conflicts) > 0

    def merge(self, other: "ConflictResult") -> "ConflictResult":
        return ConflictResult(
            conflicts=self.conflicts + other.conflicts,
            warnings=self.warnings + other.warnings,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "hasConflict": self.has_conflict,
            "conflicts": list(self.conflicts),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class SlotStatusUpdate:
    """A single manual or bulk slot status transition."""
    date: date
    start: int
    end: int
    status: SlotStatus
    reason: Optional[str] = None
    appointment_id: Optional[str] = None

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start, self.end)


def weekday_index(day: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7
