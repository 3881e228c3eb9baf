"""
Tests for time string arithmetic.
"""

import pendulum
import pytest

from clinicslots.domain.exceptions import InvalidTimeError, SlotValidationError
from clinicslots.domain.time_arithmetic import (
    add_minutes,
    is_valid_time,
    minutes_of_day,
    parse_time,
    to_minutes,
    to_time_string,
)


class TestConversions:
    """Tests for HH:mm <-> minutes conversions."""

    def test_to_minutes(self):
        """Test converting a time string to minutes since midnight."""
        assert to_minutes("00:00") == 0
        assert to_minutes("09:30") == 570
        assert to_minutes("23:59") == 1439

    def test_to_time_string_zero_pads(self):
        """Test that hours and minutes are zero-padded."""
        assert to_time_string(5) == "00:05"
        assert to_time_string(570) == "09:30"
        assert to_time_string(1439) == "23:59"

    def test_add_minutes_wraps_midnight(self):
        """Test that adding minutes wraps around 24h."""
        assert add_minutes("09:00", 45) == "09:45"
        assert add_minutes("23:45", 30) == "00:15"
        assert add_minutes("00:10", -20) == "23:50"

    def test_minutes_of_day(self):
        """Test extracting wall-clock minutes from a datetime."""
        now = pendulum.datetime(2025, 1, 8, 10, 15, tz="Europe/Berlin")
        assert minutes_of_day(now) == 615


class TestValidation:
    """Tests for boundary validation of time strings."""

    @pytest.mark.parametrize("value", ["00:00", "09:05", "23:59"])
    def test_valid_times(self, value):
        assert is_valid_time(value)

    @pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "12-00", "", "ab:cd", None])
    def test_invalid_times(self, value):
        assert not is_valid_time(value)

    def test_parse_time_rejects_malformed(self):
        """Test that malformed input fails fast as a validation error."""
        with pytest.raises(InvalidTimeError, match="HH:mm"):
            parse_time("7:5")

        # Surfaces as the general bad-request category as well
        with pytest.raises(SlotValidationError):
            parse_time("25:00")

    def test_parse_time_returns_minutes(self):
        assert parse_time("17:00") == 1020
