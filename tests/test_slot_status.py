"""
Tests for slot status transitions and boundary request models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from clinicslots.domain.exceptions import SlotValidationError
from clinicslots.domain.models import Slot, SlotStatus, SlotStatusUpdate
from clinicslots.domain.slot_status import (
    APPOINTMENT_REQUIRED,
    REASON_REQUIRED,
    apply_status_update,
    overlay_statuses,
    validate_status_update,
)
from clinicslots.domain.time_arithmetic import to_minutes
from clinicslots.schemas import (
    ConflictCheckRequest,
    GenerateSlotsRequest,
    SlotUpdateRequest,
    parse_request,
)

DAY = date(2025, 1, 9)


def _update(start: str, end: str, status: SlotStatus, **kwargs) -> SlotStatusUpdate:
    return SlotStatusUpdate(date=DAY, start=to_minutes(start), end=to_minutes(end), status=status, **kwargs)


def _slot(start: str, end: str, status=SlotStatus.AVAILABLE, **kwargs) -> Slot:
    return Slot(date=DAY, start=to_minutes(start), end=to_minutes(end), status=status, **kwargs)


class TestSlotStatus:
    """Tests for SlotStatus precedence."""

    def test_precedence_order(self):
        assert SlotStatus.strongest(SlotStatus.AVAILABLE, SlotStatus.BOOKED, SlotStatus.BLOCKED) is SlotStatus.BOOKED
        assert SlotStatus.strongest(SlotStatus.AVAILABLE, SlotStatus.BLOCKED) is SlotStatus.BLOCKED
        assert SlotStatus.strongest(SlotStatus.AVAILABLE) is SlotStatus.AVAILABLE


class TestValidateStatusUpdate:
    """Tests for the transition validation gate."""

    def test_blocked_requires_reason(self):
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.BLOCKED)) == [REASON_REQUIRED]
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.BLOCKED, reason="  ")) == [REASON_REQUIRED]
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.BLOCKED, reason="Surgery")) == []

    def test_booked_requires_appointment(self):
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.BOOKED)) == [APPOINTMENT_REQUIRED]
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.BOOKED, appointment_id="a1")) == []

    def test_available_needs_nothing(self):
        assert validate_status_update(_update("09:00", "09:30", SlotStatus.AVAILABLE)) == []


class TestApplyStatusUpdate:
    """Tests for applying transitions to a day's slots."""

    def test_updates_matching_slot(self):
        slots = [_slot("09:00", "09:30"), _slot("09:30", "10:00")]

        updated = apply_status_update(slots, _update("09:30", "10:00", SlotStatus.BOOKED, appointment_id="a1"))

        assert [s.status for s in updated] == [SlotStatus.AVAILABLE, SlotStatus.BOOKED]
        assert updated[1].appointment_id == "a1"
        # Input is left untouched
        assert slots[1].status is SlotStatus.AVAILABLE

    def test_booking_replaces_overlapping_available_slots(self):
        slots = [_slot("10:00", "10:30"), _slot("10:30", "11:00"), _slot("11:00", "11:30")]

        updated = apply_status_update(slots, _update("10:15", "10:45", SlotStatus.BOOKED, appointment_id="a1"))

        assert [(s.start_time, s.status) for s in updated] == [
            ("11:00", SlotStatus.AVAILABLE),
            ("10:15", SlotStatus.BOOKED),
        ]

    def test_available_update_keeps_neighbours(self):
        slots = [_slot("10:00", "10:30", SlotStatus.BLOCKED, blocked_reason="Away")]

        updated = apply_status_update(slots, _update("10:15", "10:45", SlotStatus.AVAILABLE))

        assert len(updated) == 2

    def test_appends_new_range(self):
        updated = apply_status_update([], _update("12:00", "13:00", SlotStatus.BLOCKED, reason="Meeting"))

        assert len(updated) == 1
        assert updated[0].blocked_reason == "Meeting"
        assert updated[0].to_dict() == {
            "date": "2025-01-09",
            "start": "12:00",
            "end": "13:00",
            "status": "blocked",
            "reason": "Meeting",
        }

    def test_cancellation_clears_appointment(self):
        slots = [_slot("09:00", "09:30", SlotStatus.BOOKED, appointment_id="a1")]

        updated = apply_status_update(slots, _update("09:00", "09:30", SlotStatus.AVAILABLE))

        assert updated[0].status is SlotStatus.AVAILABLE
        assert updated[0].appointment_id is None

    def test_unblock_clears_reason(self):
        slots = [_slot("09:00", "09:30", SlotStatus.BLOCKED, blocked_reason="Away")]

        updated = apply_status_update(slots, _update("09:00", "09:30", SlotStatus.AVAILABLE))

        assert updated[0].blocked_reason is None


class TestOverlayStatuses:
    """Tests for merging generated candidates with persisted slots."""

    def test_strongest_status_wins(self):
        candidates = [_slot("09:00", "09:30"), _slot("09:30", "10:00"), _slot("10:00", "10:30")]
        persisted = [
            _slot("09:00", "10:00", SlotStatus.BLOCKED, blocked_reason="Rounds"),
            _slot("09:30", "10:00", SlotStatus.BOOKED, appointment_id="a1"),
        ]

        merged = overlay_statuses(candidates, persisted)

        assert [s.status for s in merged] == [SlotStatus.BLOCKED, SlotStatus.BOOKED, SlotStatus.AVAILABLE]
        assert merged[1].appointment_id == "a1"
        assert merged[0].blocked_reason == "Rounds"


class TestRequestModels:
    """Tests for boundary request validation."""

    def test_slot_update_requires_reason_for_blocked(self):
        with pytest.raises(ValidationError, match="reason is required"):
            SlotUpdateRequest(date="2025-01-09", start_time="09:00", end_time="09:30", status="blocked")

    def test_slot_update_requires_appointment_for_booked(self):
        with pytest.raises(SlotValidationError, match="appointmentId is required"):
            parse_request(
                SlotUpdateRequest,
                date="2025-01-09", start_time="09:00", end_time="09:30", status="booked",
            )

    def test_slot_update_to_domain(self):
        request = SlotUpdateRequest(
            date="2025-01-09", start_time="09:00", end_time="09:30",
            status="booked", appointment_id="a1",
        )

        update = request.to_domain()

        assert update.date == DAY
        assert (update.start, update.end) == (540, 570)
        assert update.status is SlotStatus.BOOKED

    def test_unknown_status_rejected(self):
        with pytest.raises(SlotValidationError, match="status"):
            parse_request(
                SlotUpdateRequest,
                date="2025-01-09", start_time="09:00", end_time="09:30", status="cancelled",
            )

    @pytest.mark.parametrize("field,value", [
        ("slot_duration", 4),
        ("slot_duration", 121),
        ("buffer_minutes", 61),
        ("grace_period", -1),
        ("start_time", "9:00"),
        ("date", "2025-13-01"),
    ])
    def test_generate_request_bounds(self, field, value):
        payload = {"date": "2025-01-09", "start_time": "09:00", "end_time": "17:00"}
        payload[field] = value

        with pytest.raises(SlotValidationError, match=field):
            parse_request(GenerateSlotsRequest, **payload)

    def test_generate_request_breaks(self):
        request = GenerateSlotsRequest(
            date="2025-01-09",
            start_time="09:00",
            end_time="17:00",
            breaks=[{"start_time": "12:00", "end_time": "13:00", "label": "Lunch"}],
        )

        assert request.slot_duration == 30
        assert [str(b) for b in request.break_periods()] == ["12:00-13:00"]

    def test_inverted_break_rejected(self):
        with pytest.raises(SlotValidationError, match="Break end_time"):
            parse_request(
                GenerateSlotsRequest,
                date="2025-01-09", start_time="09:00", end_time="17:00",
                breaks=[{"start_time": "13:00", "end_time": "12:00"}],
            )

    def test_conflict_check_request(self):
        request = ConflictCheckRequest(date="2025-01-09", start_time="10:00", end_time="10:30")

        assert str(request.time_range()) == "10:00-10:30"

        with pytest.raises(ValidationError):
            ConflictCheckRequest(date="2025-01-09", start_time="10:30", end_time="10:00")
