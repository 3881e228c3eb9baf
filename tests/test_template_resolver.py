"""
Tests for availability template expansion.
"""

from dataclasses import replace
from datetime import date

import pendulum
import pytest

from clinicslots.domain.exceptions import TemplateNotFoundError
from clinicslots.domain.models import AvailabilityTemplate, PastDatePolicy, weekday_index
from clinicslots.domain.presets import PRESET_TEMPLATES, build_preset
from clinicslots.domain.template_resolver import (
    AvailabilityTemplateResolver,
    iter_dates,
    select_template,
)
from clinicslots.domain.time_arithmetic import to_minutes

NOW = pendulum.datetime(2025, 1, 1, 8, 0, tz="UTC")
MONDAY = date(2025, 1, 6)
SUNDAY = date(2025, 1, 12)


def _template(name="Custom", **overrides) -> AvailabilityTemplate:
    values = dict(
        name=name,
        working_days=(1, 2, 3, 4, 5),
        start=to_minutes("09:00"),
        end=to_minutes("12:00"),
        slot_duration=30,
    )
    values.update(overrides)
    return AvailabilityTemplate(**values)


class TestTemplateModel:
    """Tests for AvailabilityTemplate invariants."""

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(SUNDAY) == 0
        assert weekday_index(MONDAY) == 1
        assert weekday_index(date(2025, 1, 11)) == 6  # Saturday

    @pytest.mark.parametrize("overrides", [
        {"slot_duration": 4},
        {"slot_duration": 121},
        {"buffer_minutes": 61},
        {"working_days": (7,)},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            _template(**overrides)


class TestResolve:
    """Tests for AvailabilityTemplateResolver.resolve."""

    def setup_method(self):
        self.resolver = AvailabilityTemplateResolver()

    def test_weekdays_preset_over_a_week(self):
        """Weekdays only; step 35 minutes; lunch removes two slots."""
        resolved = self.resolver.resolve(PRESET_TEMPLATES["Weekdays 9-5"], MONDAY, SUNDAY, now=NOW)

        assert list(resolved) == [date(2025, 1, d) for d in range(6, 11)]
        assert [s.start_time for s in resolved[MONDAY]] == [
            "09:00", "09:35", "10:10", "10:45", "11:20",
            "13:05", "13:40", "14:15", "14:50", "15:25", "16:00",
        ]
        assert all(s.duration_minutes() == 30 for s in (x.time_range for x in resolved[MONDAY]))

    def test_mon_wed_fri(self):
        resolved = self.resolver.resolve(PRESET_TEMPLATES["Mon-Wed-Fri"], MONDAY, SUNDAY, now=NOW)

        assert list(resolved) == [date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 10)]

    def test_morning_clinic_density(self):
        resolved = self.resolver.resolve(PRESET_TEMPLATES["Morning Clinic"], MONDAY, now=NOW)

        slots = resolved[MONDAY]
        assert len(slots) == 9
        assert slots[0].start_time == "08:00"
        assert slots[-1].end_time == "11:40"

    def test_single_day_when_end_omitted(self):
        resolved = self.resolver.resolve(_template(), MONDAY, now=NOW)

        assert list(resolved) == [MONDAY]
        assert len(resolved[MONDAY]) == 6

    def test_non_working_day_produces_nothing(self):
        assert self.resolver.resolve(_template(), SUNDAY, now=NOW) == {}

    def test_validity_period(self):
        template = _template(valid_from=date(2025, 1, 8), valid_to=date(2025, 1, 9))

        resolved = self.resolver.resolve(template, MONDAY, SUNDAY, now=NOW)

        assert list(resolved) == [date(2025, 1, 8), date(2025, 1, 9)]

    def test_today_is_trimmed(self):
        now = pendulum.datetime(2025, 1, 6, 10, 10, tz="UTC")

        resolved = self.resolver.resolve(_template(), MONDAY, date(2025, 1, 7), now=now)

        assert resolved[MONDAY][0].start_time == "10:30"
        assert len(resolved[date(2025, 1, 7)]) == 6

    def test_today_after_hours_is_empty(self):
        now = pendulum.datetime(2025, 1, 6, 14, 0, tz="UTC")

        resolved = self.resolver.resolve(PRESET_TEMPLATES["Morning Clinic"], MONDAY, now=now)

        assert resolved == {MONDAY: []}

    def test_past_dates_policy(self):
        now = pendulum.datetime(2025, 1, 8, 8, 0, tz="UTC")
        resolver = AvailabilityTemplateResolver(past_dates=PastDatePolicy.EXCLUDE)

        resolved = resolver.resolve(_template(), MONDAY, date(2025, 1, 9), now=now)

        assert resolved[MONDAY] == []
        assert len(resolved[date(2025, 1, 9)]) == 6


class TestSelectTemplate:
    """Tests for choosing the active template of a date."""

    def test_default_wins(self):
        other = _template("Other")
        default = _template("Default", is_default=True)

        assert select_template([other, default], MONDAY) is default

    def test_falls_back_to_valid_template(self):
        expired = _template("Old", is_default=True, valid_to=date(2024, 12, 31))
        current = _template("Current")

        assert select_template([expired, current], MONDAY) is current

    def test_no_template(self):
        assert select_template([], MONDAY) is None

    def test_resolve_for_doctor_switches_templates(self):
        morning = _template("Morning", valid_to=date(2025, 1, 7))
        afternoon = _template(
            "Afternoon",
            start=to_minutes("14:00"),
            end=to_minutes("16:00"),
            valid_from=date(2025, 1, 8),
        )

        resolved = AvailabilityTemplateResolver().resolve_for_doctor(
            [morning, afternoon], MONDAY, SUNDAY, now=NOW
        )

        assert resolved[MONDAY][0].start_time == "09:00"
        assert resolved[date(2025, 1, 8)][0].start_time == "14:00"
        assert SUNDAY not in resolved


class TestPresets:
    """Tests for preset templates."""

    def test_presets_are_valid_templates(self):
        assert set(PRESET_TEMPLATES) == {
            "Weekdays 9-5", "Morning Clinic", "Evening Clinic", "Mon-Wed-Fri",
        }
        assert all(isinstance(t, AvailabilityTemplate) for t in PRESET_TEMPLATES.values())

    def test_build_preset_is_case_insensitive(self):
        template = build_preset("evening clinic", doctor_id="doc-1")

        assert template.name == "Evening Clinic"
        assert template.doctor_id == "doc-1"
        assert template == replace(PRESET_TEMPLATES["Evening Clinic"], doctor_id="doc-1")

    def test_unknown_preset(self):
        with pytest.raises(TemplateNotFoundError, match="Unknown template"):
            build_preset("Night Shift")


def test_iter_dates():
    assert iter_dates(MONDAY, date(2025, 1, 8)) == [date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)]
    assert iter_dates(MONDAY) == [MONDAY]
    assert iter_dates(SUNDAY, MONDAY) == []
