"""
Adapters layer - Slot status storage.
"""

from .memory_store import InMemorySlotStore, SlotStatusStoreProtocol

__all__ = ["InMemorySlotStore", "SlotStatusStoreProtocol"]
