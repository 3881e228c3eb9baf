"""
Application service for doctor schedules.

The service wires the pure domain functions to a slot store: it generates
candidate slots, overlays persisted statuses, checks proposed bookings and
commits them through the store's atomic check-then-commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from pendulum import DateTime

from ..adapters.memory_store import SlotStatusStoreProtocol
from ..config import AppConfig
from ..domain.break_applier import apply_breaks
from ..domain.conflict_detector import ConflictDetector
from ..domain.exceptions import SlotUnavailableError
from ..domain.models import (
    AvailabilityTemplate,
    BreakPeriod,
    ConflictResult,
    PastDatePolicy,
    Slot,
    SlotStatus,
)
from ..domain.slot_generator import get_slots_safe
from ..domain.slot_status import overlay_statuses
from ..domain.template_resolver import AvailabilityTemplateResolver
from ..domain.time_arithmetic import to_minutes
from ..schemas import (
    ConflictCheckRequest,
    GenerateSlotsRequest,
    SlotUpdateRequest,
    parse_request,
)

logger = logging.getLogger(__name__)

ALL_DAYS = (0, 1, 2, 3, 4, 5, 6)


@dataclass
class TemplateApplication:
    """Outcome of applying a template to a date range."""
    result: ConflictResult
    slots_added: Dict[date, int] = field(default_factory=dict)

    @property
    def applied(self) -> bool:
        return not self.result.has_conflict


class ScheduleService:
    """
    Orchestrates slot generation, conflict checks and status writes.

    Dependency inversion toward a store protocol keeps the persistence layer
    out of the engine; the in-memory store is used by the CLI and the tests.
    """

    def __init__(
        self,
        store: SlotStatusStoreProtocol,
        detector: Optional[ConflictDetector] = None,
        past_dates: PastDatePolicy = PastDatePolicy.ALLOW,
        breaks: Sequence[BreakPeriod] = (),
        grace_period: int = 0,
    ) -> None:
        self._store = store
        self._detector = detector or ConflictDetector()
        self._past_dates = past_dates
        self._breaks = list(breaks)
        self._grace_period = grace_period

    @classmethod
    def from_config(cls, config: AppConfig, store: SlotStatusStoreProtocol) -> "ScheduleService":
        return cls(
            store=store,
            past_dates=config.past_dates,
            breaks=config.break_periods(),
            grace_period=config.defaults.grace_period,
        )

    def _breaks_with(self, extra: Optional[Iterable[BreakPeriod]]) -> List[BreakPeriod]:
        return self._breaks + list(extra or ())

    def generate_slots(self, *, now: DateTime, **payload) -> Dict[date, List[Slot]]:
        """
        Generate candidate slots from ad hoc working hours.

        Accepts the fields of ``GenerateSlotsRequest``; a range is expanded
        day by day with the buffer inserted between slots.

        Raises:
            SlotValidationError: If the payload is invalid
        """
        request: GenerateSlotsRequest = parse_request(GenerateSlotsRequest, **payload)

        template = AvailabilityTemplate(
            name="ad hoc",
            working_days=ALL_DAYS,
            start=to_minutes(request.start_time),
            end=to_minutes(request.end_time),
            slot_duration=request.slot_duration,
            buffer_minutes=request.buffer_minutes,
            breaks=tuple(self._breaks_with(request.break_periods())),
        )
        resolver = AvailabilityTemplateResolver(self._past_dates, request.grace_period)
        resolved = resolver.resolve(template, request.date, request.end_date, now=now)

        logger.debug(
            "Generated %d slot(s) over %d day(s)",
            sum(len(slots) for slots in resolved.values()),
            len(resolved),
        )
        return resolved

    def day_slots(
        self,
        *,
        doctor_id: str,
        day: date,
        start_time: str,
        end_time: str,
        slot_duration: int,
        now: DateTime,
        grace_period: Optional[int] = None,
        breaks: Optional[Iterable[BreakPeriod]] = None,
    ) -> List[Slot]:
        """
        Return the day's candidate slots with persisted statuses overlaid.

        ``grace_period`` defaults to the configured one.

        Raises:
            SlotValidationError: If a time, the duration or the grace period is invalid
        """
        candidates = get_slots_safe(
            day,
            start_time,
            end_time,
            slot_duration,
            self._grace_period if grace_period is None else grace_period,
            now=now,
            past_dates=self._past_dates,
        )
        candidates = apply_breaks(candidates, self._breaks_with(breaks))
        return overlay_statuses(candidates, self._store.get_slots(doctor_id, day))

    def available_slots(self, **kwargs) -> List[Slot]:
        """``day_slots`` restricted to slots that can still be booked."""
        return [s for s in self.day_slots(**kwargs) if s.status is SlotStatus.AVAILABLE]

    def check_booking(
        self,
        *,
        doctor_id: str,
        now: DateTime,
        breaks: Optional[Iterable[BreakPeriod]] = None,
        **payload,
    ) -> ConflictResult:
        """Check a proposed booking (``ConflictCheckRequest`` fields) against the store."""
        request: ConflictCheckRequest = parse_request(ConflictCheckRequest, **payload)

        existing = self._store.get_slots(doctor_id, request.date)
        if request.exclude_appointment_id:
            existing = [s for s in existing if s.appointment_id != request.exclude_appointment_id]

        return self._detector.check_slot_conflicts(
            request.time_range(),
            existing,
            request.date,
            self._breaks_with(breaks),
            now=now,
        )

    def book(
        self,
        *,
        doctor_id: str,
        day: date,
        start_time: str,
        end_time: str,
        appointment_id: str,
        now: DateTime,
        breaks: Optional[Iterable[BreakPeriod]] = None,
    ) -> Slot:
        """
        Book a range if, and only if, it is free at commit time.

        Raises:
            SlotValidationError: If the request is malformed
            SlotUnavailableError: If the range has a hard conflict
        """
        request: SlotUpdateRequest = parse_request(
            SlotUpdateRequest,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=SlotStatus.BOOKED,
            appointment_id=appointment_id,
        )
        update = request.to_domain()
        day_breaks = self._breaks_with(breaks)

        def check(existing: List[Slot]) -> ConflictResult:
            return self._detector.check_slot_conflicts(
                update.time_range, existing, update.date, day_breaks, now=now
            )

        result = self._store.commit_if_free(doctor_id, update, check)
        if result.has_conflict:
            raise SlotUnavailableError("; ".join(result.conflicts), result)

        return next(
            s for s in self._store.get_slots(doctor_id, update.date)
            if s.key == (update.start, update.end)
        )

    def check_reschedule(
        self,
        *,
        doctor_id: str,
        appointment_id: str,
        new_date: date,
        new_time: str,
        duration: int,
        now: DateTime,
        breaks: Optional[Iterable[BreakPeriod]] = None,
    ) -> ConflictResult:
        """Check moving an appointment to another date and time."""
        return self._detector.check_reschedule_conflicts(
            appointment_id,
            new_date,
            new_time,
            duration,
            self._store.get_slots(doctor_id, new_date),
            self._breaks_with(breaks),
            now=now,
        )

    def update_slot_status(self, *, doctor_id: str, **payload) -> Slot:
        """
        Apply a manual status transition (``SlotUpdateRequest`` fields).

        No conflict detection runs here; booking flows go through ``book``.

        Raises:
            SlotValidationError: If a blocked slot has no reason or a booked
                slot has no appointment id
        """
        request: SlotUpdateRequest = parse_request(SlotUpdateRequest, **payload)
        return self._store.save_slot(doctor_id, request.to_domain())

    def apply_template(
        self,
        *,
        doctor_id: str,
        template: AvailabilityTemplate,
        start_date: date,
        end_date: Optional[date] = None,
        now: DateTime,
    ) -> TemplateApplication:
        """
        Expand a template over a date range and store the resulting slots as
        available. Persisted slots are never overwritten.
        """
        result = self._detector.validate_date_range(start_date, end_date, now=now)
        if result.has_conflict:
            return TemplateApplication(result=result)

        resolver = AvailabilityTemplateResolver(self._past_dates, self._grace_period)
        resolved = resolver.resolve(template, start_date, end_date, now=now)

        application = TemplateApplication(result=result)
        for day, slots in resolved.items():
            application.slots_added[day] = self._store.add_available(doctor_id, day, slots)

        logger.info(
            "Applied template '%s' for %s: %d slot(s) on %d day(s)",
            template.name,
            doctor_id,
            sum(application.slots_added.values()),
            len(application.slots_added),
        )
        return application
