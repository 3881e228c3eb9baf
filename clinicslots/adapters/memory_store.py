"""
Slot status storage.

The engine only supplies the conflict check; whoever persists slots must make
check-then-commit atomic. ``InMemorySlotStore`` does so with one lock per
doctor and date.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable, Dict, List, Protocol, Sequence, Tuple

from ..domain.models import ConflictResult, Slot, SlotStatusUpdate
from ..domain.slot_status import apply_status_update

logger = logging.getLogger(__name__)

ConflictCheck = Callable[[List[Slot]], ConflictResult]


class SlotStatusStoreProtocol(Protocol):
    """Protocol describing the slot store behaviour needed by the service."""

    def get_slots(self, doctor_id: str, day: date) -> List[Slot]:
        """Return the persisted slots of a doctor's day, ordered by start."""

    def save_slot(self, doctor_id: str, update: SlotStatusUpdate) -> Slot:
        """Apply a status transition unconditionally."""

    def add_available(self, doctor_id: str, day: date, slots: Sequence[Slot]) -> int:
        """Add generated slots that do not collide with persisted ones."""

    def commit_if_free(
        self,
        doctor_id: str,
        update: SlotStatusUpdate,
        check: ConflictCheck,
    ) -> ConflictResult:
        """Run ``check`` and apply ``update`` atomically when it has no conflict."""


class InMemorySlotStore:
    """
    Thread-safe in-memory slot store.

    Writers for the same ``(doctor_id, date)`` are serialized, so two
    concurrent bookings of one range cannot both pass the conflict check.
    """

    def __init__(self):
        self._days: Dict[Tuple[str, date], List[Slot]] = {}
        self._locks: Dict[Tuple[str, date], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: Tuple[str, date]) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get_slots(self, doctor_id: str, day: date) -> List[Slot]:
        key = (doctor_id, day)
        with self._lock_for(key):
            return sorted(self._days.get(key, []), key=lambda s: s.key)

    def save_slot(self, doctor_id: str, update: SlotStatusUpdate) -> Slot:
        key = (doctor_id, update.date)
        with self._lock_for(key):
            return self._write(key, update)

    def add_available(self, doctor_id: str, day: date, slots: Sequence[Slot]) -> int:
        key = (doctor_id, day)
        with self._lock_for(key):
            existing = self._days.setdefault(key, [])
            taken = [s.time_range for s in existing]
            added = 0
            for slot in slots:
                if any(slot.time_range.overlaps(other) for other in taken):
                    continue
                existing.append(slot)
                taken.append(slot.time_range)
                added += 1

        logger.debug("Added %d generated slot(s) for %s on %s", added, doctor_id, day)
        return added

    def commit_if_free(
        self,
        doctor_id: str,
        update: SlotStatusUpdate,
        check: ConflictCheck,
    ) -> ConflictResult:
        key = (doctor_id, update.date)
        with self._lock_for(key):
            result = check(list(self._days.get(key, [])))
            if result.has_conflict:
                logger.warning(
                    "Rejected %s for %s on %s %s: %s",
                    update.status.value,
                    doctor_id,
                    update.date,
                    update.time_range,
                    "; ".join(result.conflicts),
                )
                return result
            self._write(key, update)

        return result

    def _write(self, key: Tuple[str, date], update: SlotStatusUpdate) -> Slot:
        slots = apply_status_update(self._days.get(key, []), update)
        self._days[key] = slots
        logger.info("Slot %s on %s set to %s", update.time_range, update.date, update.status.value)
        return next(s for s in slots if s.key == (update.start, update.end))
