"""
Domain layer - Pure scheduling logic without I/O.
"""

from .break_applier import apply_breaks, merge_breaks
from .conflict_detector import ConflictDetector, times_overlap
from .models import (
    AvailabilityTemplate,
    BreakPeriod,
    ConflictResult,
    PastDatePolicy,
    Slot,
    SlotStatus,
    SlotStatusUpdate,
    TimeRange,
    WorkingWindow,
)
from .slot_generator import adjust_for_today, generate_time_slots, get_available_slots_for_date
from .template_resolver import AvailabilityTemplateResolver

__all__ = [
    "AvailabilityTemplate",
    "AvailabilityTemplateResolver",
    "BreakPeriod",
    "ConflictDetector",
    "ConflictResult",
    "PastDatePolicy",
    "Slot",
    "SlotStatus",
    "SlotStatusUpdate",
    "TimeRange",
    "WorkingWindow",
    "adjust_for_today",
    "apply_breaks",
    "generate_time_slots",
    "get_available_slots_for_date",
    "merge_breaks",
    "times_overlap",
]
