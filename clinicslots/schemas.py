"""
Boundary request models.

Times cross the boundary as "HH:mm" strings and dates as YYYY-MM-DD; these
models reject malformed input before any scheduling logic runs and convert
valid requests into domain objects.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import SlotValidationError
from .domain.models import BreakPeriod, SlotStatus, SlotStatusUpdate, TimeRange
from .domain.slot_status import validate_status_update
from .domain.time_arithmetic import is_valid_time, to_minutes


def _check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError(f"Time must be in HH:mm format, got {value!r}")
    return value


def format_validation_error(exc: ValidationError) -> str:
    """Flatten a pydantic error into a single readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"])
        message = error["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def parse_request(model: type, **data):
    """
    Build a request model, turning pydantic errors into SlotValidationError.

    Raises:
        SlotValidationError: If the payload is invalid
    """
    try:
        return model(**data)
    except ValidationError as exc:
        raise SlotValidationError(format_validation_error(exc)) from exc


class BreakRequest(BaseModel):
    """A break period as sent by a client."""
    start_time: str
    end_time: str
    label: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "BreakRequest":
        """Ensure the break ends after it starts."""
        if self.end_time <= self.start_time:
            raise ValueError("Break end_time must be later than start_time")
        return self

    def to_domain(self) -> BreakPeriod:
        return BreakPeriod(
            start=to_minutes(self.start_time),
            end=to_minutes(self.end_time),
            label=self.label,
        )


class GenerateSlotsRequest(BaseModel):
    """Ad hoc working-hours configuration for one date or a date range."""
    date: datetime.date
    end_date: Optional[datetime.date] = None
    start_time: str
    end_time: str
    slot_duration: int = Field(default=30, ge=5, le=120)
    buffer_minutes: int = Field(default=0, ge=0, le=60)
    grace_period: int = Field(default=0, ge=0, le=60)
    breaks: List[BreakRequest] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    def break_periods(self) -> List[BreakPeriod]:
        return [b.to_domain() for b in self.breaks]


class ConflictCheckRequest(BaseModel):
    """A proposed booking to check against a doctor's day."""
    date: datetime.date
    start_time: str
    end_time: str
    exclude_appointment_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "ConflictCheckRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self

    def time_range(self) -> TimeRange:
        return TimeRange(start=to_minutes(self.start_time), end=to_minutes(self.end_time))


class SlotUpdateRequest(BaseModel):
    """
    A single-slot status transition.

    A blocked slot needs a reason and a booked slot needs an appointment id.
    """
    date: datetime.date
    start_time: str
    end_time: str
    status: SlotStatus
    reason: Optional[str] = None
    appointment_id: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_transition(self) -> "SlotUpdateRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        errors = validate_status_update(self.to_domain())
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def to_domain(self) -> SlotStatusUpdate:
        return SlotStatusUpdate(
            date=self.date,
            start=to_minutes(self.start_time),
            end=to_minutes(self.end_time),
            status=self.status,
            reason=self.reason,
            appointment_id=self.appointment_id,
        )
