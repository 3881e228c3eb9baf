"""
Canned availability templates offered to every doctor.
"""

from dataclasses import replace
from typing import Dict, Optional

from .exceptions import TemplateNotFoundError
from .models import AvailabilityTemplate, BreakPeriod
from .time_arithmetic import to_minutes

WEEKDAYS = (1, 2, 3, 4, 5)  # Monday - Friday


def _preset(
    name: str,
    working_days,
    start_time: str,
    end_time: str,
    slot_duration: int,
    buffer_minutes: int,
    description: str,
    breaks=(),
) -> AvailabilityTemplate:
    return AvailabilityTemplate(
        name=name,
        working_days=tuple(working_days),
        start=to_minutes(start_time),
        end=to_minutes(end_time),
        slot_duration=slot_duration,
        buffer_minutes=buffer_minutes,
        breaks=tuple(breaks),
        description=description,
    )


PRESET_TEMPLATES: Dict[str, AvailabilityTemplate] = {
    preset.name: preset
    for preset in (
        _preset(
            "Weekdays 9-5", WEEKDAYS, "09:00", "17:00", 30, 5,
            "Standard weekday schedule with lunch break",
            breaks=[BreakPeriod(to_minutes("12:00"), to_minutes("13:00"), "Lunch Break")],
        ),
        _preset(
            "Morning Clinic", WEEKDAYS, "08:00", "12:00", 20, 5,
            "Morning-only clinic hours",
        ),
        _preset(
            "Evening Clinic", WEEKDAYS, "16:00", "20:00", 30, 5,
            "Evening clinic hours for working patients",
        ),
        _preset(
            "Mon-Wed-Fri", (1, 3, 5), "09:00", "17:00", 30, 5,
            "Alternate weekday schedule",
            breaks=[BreakPeriod(to_minutes("12:30"), to_minutes("13:30"), "Lunch")],
        ),
    )
}


def build_preset(name: str, doctor_id: Optional[str] = None) -> AvailabilityTemplate:
    """
    Look up a preset by name (case-insensitive) and bind it to a doctor.

    Raises:
        TemplateNotFoundError: If no preset has that name
    """
    for preset_name, preset in PRESET_TEMPLATES.items():
        if preset_name.lower() == name.lower():
            return replace(preset, doctor_id=doctor_id)

    raise TemplateNotFoundError(
        f"Unknown template '{name}'. Available presets: {', '.join(PRESET_TEMPLATES)}"
    )
