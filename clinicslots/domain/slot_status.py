"""
Manual and bulk slot status transitions.

This is a validation gate in front of the slot store. It does not run
conflict detection; booking flows call the ConflictDetector first.
"""

from typing import List, Sequence

from .models import Slot, SlotStatus, SlotStatusUpdate

REASON_REQUIRED = "reason is required when status is 'blocked'"
APPOINTMENT_REQUIRED = "appointmentId is required when status is 'booked'"


def validate_status_update(update: SlotStatusUpdate) -> List[str]:
    """Return the validation errors for an update; empty means accepted."""
    errors: List[str] = []

    if update.status is SlotStatus.BLOCKED and not (update.reason or "").strip():
        errors.append(REASON_REQUIRED)

    if update.status is SlotStatus.BOOKED and not update.appointment_id:
        errors.append(APPOINTMENT_REQUIRED)

    return errors


def apply_status_update(slots: Sequence[Slot], update: SlotStatusUpdate) -> List[Slot]:
    """
    Apply a transition to a day's slots and return the new list.

    The slot with the same range is updated in place of the old one; when no
    such slot exists a new one is appended. A booked or blocked update
    replaces the available slots it overlaps, so ranges on one date never
    overlap. ``appointment_id`` only survives on booked slots and
    ``blocked_reason`` only on blocked ones.
    """
    updated: List[Slot] = []
    found = False
    new_range = update.time_range

    for slot in slots:
        if (
            update.status.is_hard
            and slot.status is SlotStatus.AVAILABLE
            and slot.key != (update.start, update.end)
            and slot.time_range.overlaps(new_range)
        ):
            continue
        if slot.key == (update.start, update.end):
            slot = slot.with_status(update.status, update.appointment_id, update.reason)
            found = True
        updated.append(slot)

    if not found:
        updated.append(
            Slot(date=update.date, start=update.start, end=update.end).with_status(
                update.status, update.appointment_id, update.reason
            )
        )

    return updated


def overlay_statuses(candidates: Sequence[Slot], persisted: Sequence[Slot]) -> List[Slot]:
    """
    Give each generated candidate the strongest status of the persisted slots
    it overlaps (booked > blocked > available).
    """
    merged: List[Slot] = []

    for candidate in candidates:
        overlapping = [p for p in persisted if p.time_range.overlaps(candidate.time_range)]
        if not overlapping:
            merged.append(candidate)
            continue

        winner = max(overlapping, key=lambda p: p.status.precedence)
        merged.append(
            candidate.with_status(winner.status, winner.appointment_id, winner.blocked_reason)
        )

    return merged
