"""
Service layer helpers that orchestrate the slot store and domain logic.
"""

from .schedule_service import ScheduleService, TemplateApplication

__all__ = ["ScheduleService", "TemplateApplication"]
