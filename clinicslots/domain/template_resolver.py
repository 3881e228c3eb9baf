"""
Expansion of weekly availability templates into concrete slots.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .break_applier import apply_breaks
from .models import AvailabilityTemplate, PastDatePolicy, Slot
from .slot_generator import effective_step, generate_time_slots, resolve_window_for_date


def iter_dates(start_date: date, end_date: Optional[date] = None) -> List[date]:
    """Every calendar date in ``[start_date, end_date]``; a single day when end is omitted."""
    current = pendulum.date(start_date.year, start_date.month, start_date.day)
    last = end_date or start_date

    days: List[date] = []
    while current <= last:
        days.append(date(current.year, current.month, current.day))
        current = current.add(days=1)

    return days


def select_template(
    templates: Sequence[AvailabilityTemplate],
    day: date,
) -> Optional[AvailabilityTemplate]:
    """
    Pick the template that governs ``day``.

    The default template wins when it is valid on that date; otherwise the
    first template whose validity period covers the date. Returns None when
    no template applies.
    """
    candidates = [t for t in templates if t.is_valid_on(day)]
    if not candidates:
        return None

    for template in candidates:
        if template.is_default:
            return template

    return candidates[0]


class AvailabilityTemplateResolver:
    """
    Resolves templates into per-date slot lists.

    Algorithm per date:
    1. Skip dates outside the validity period or not in ``working_days``
    2. Trim today by ``now`` (past dates follow the policy)
    3. Generate slots stepping by duration plus buffer
    4. Drop slots that touch a break
    """

    def __init__(self, past_dates: PastDatePolicy = PastDatePolicy.ALLOW, grace_period: int = 0):
        self.past_dates = past_dates
        self.grace_period = grace_period

    def resolve(
        self,
        template: AvailabilityTemplate,
        start_date: date,
        end_date: Optional[date] = None,
        *,
        now: DateTime,
    ) -> Dict[date, List[Slot]]:
        """
        Expand a template over a date range.

        Returns:
            Ordered mapping of working date -> slots. Non-working dates are absent.
        """
        resolved: Dict[date, List[Slot]] = {}

        for day in iter_dates(start_date, end_date):
            if not template.is_valid_on(day) or not template.is_working_day(day):
                continue
            resolved[day] = self.resolve_day(template, day, now=now)

        return resolved

    def resolve_day(
        self,
        template: AvailabilityTemplate,
        day: date,
        *,
        now: DateTime,
    ) -> List[Slot]:
        """Slots a template yields for a single date, ignoring working days."""
        window = resolve_window_for_date(
            day,
            template.window,
            template.slot_duration,
            now,
            self.grace_period,
            self.past_dates,
        )
        if window is None:
            return []

        ranges = generate_time_slots(
            window.start,
            window.end,
            template.slot_duration,
            step=effective_step(template.slot_duration, template.buffer_minutes),
        )
        ranges = apply_breaks(ranges, template.breaks)

        return [Slot(date=day, start=tr.start, end=tr.end) for tr in ranges]

    def resolve_for_doctor(
        self,
        templates: Sequence[AvailabilityTemplate],
        start_date: date,
        end_date: Optional[date] = None,
        *,
        now: DateTime,
    ) -> Dict[date, List[Slot]]:
        """Expand a doctor's templates, choosing the active one per date."""
        resolved: Dict[date, List[Slot]] = {}

        for day in iter_dates(start_date, end_date):
            template = select_template(templates, day)
            if template is None or not template.is_working_day(day):
                continue
            resolved[day] = self.resolve_day(template, day, now=now)

        return resolved
