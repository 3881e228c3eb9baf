"""
Domain-specific exception hierarchy for the scheduling engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ConflictResult


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class SlotValidationError(SchedulingError):
    """Raised when a request is malformed or out of range (bad request)."""


class InvalidTimeError(SlotValidationError):
    """Raised when a time string is not a valid HH:mm value."""


class TemplateNotFoundError(SchedulingError):
    """Raised when a named availability template cannot be found."""


class SlotUnavailableError(SchedulingError):
    """Raised when an atomic booking commit is rejected by the store."""

    def __init__(self, message: str, result: "ConflictResult"):
        super().__init__(message)
        self.result = result
