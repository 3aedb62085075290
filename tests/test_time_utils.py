"""
Unit tests for timestamp normalization and deadline helpers.
"""
from datetime import datetime, timezone

import pytest
import pytz

from app.utils.time_utils import add_hours, hours_remaining, to_storage_datetime


class TestTimeUtils:
    """Everything is stored as naive UTC."""

    def test_form_datetime_without_seconds(self):
        assert to_storage_datetime("2024-03-01 10:15", "UTC") == datetime(2024, 3, 1, 10, 15)

    def test_form_datetime_in_ship_timezone(self):
        assert to_storage_datetime("2024-03-01 10:15:30", "America/New_York") == datetime(2024, 3, 1, 15, 15, 30)

    def test_gps_iso_with_z_suffix(self):
        assert to_storage_datetime("2024-03-01T12:30:00.500Z") == datetime(2024, 3, 1, 12, 30, 0, 500000)

    def test_aware_datetime_converted(self):
        aware = pytz.timezone("Europe/Madrid").localize(datetime(2024, 7, 1, 12, 0))
        assert to_storage_datetime(aware) == datetime(2024, 7, 1, 10, 0)

    def test_utc_aware_datetime(self):
        assert to_storage_datetime(datetime(2024, 1, 1, tzinfo=timezone.utc)) == datetime(2024, 1, 1)

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert to_storage_datetime(value) is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            to_storage_datetime("yesterday-ish")

    def test_deadline_helpers(self):
        start = datetime(2024, 3, 1, 22, 0)
        deadline = add_hours(start, 6)
        assert deadline == datetime(2024, 3, 2, 4, 0)
        assert hours_remaining(deadline, datetime(2024, 3, 2, 1, 30)) == 2.5
        assert hours_remaining(deadline, datetime(2024, 3, 2, 5, 0)) == -1.0
