"""Tests for order_spine.core.timestamps."""

from datetime import UTC, datetime, timedelta, timezone

from order_spine.core.timestamps import (
    format_display_date,
    from_iso8601,
    to_iso8601,
    utc_now,
)


class TestIso8601:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is not None

    def test_to_iso8601_uses_z_suffix(self):
        dt = datetime(2025, 1, 9, 14, 3, 11, 250000, tzinfo=UTC)

        assert to_iso8601(dt) == "2025-01-09T14:03:11.250000Z"

    def test_to_iso8601_converts_offsets(self):
        dt = datetime(2025, 1, 9, 16, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_iso8601(dt) == "2025-01-09T14:00:00.000000Z"

    def test_naive_is_treated_as_utc(self):
        assert to_iso8601(datetime(2025, 1, 9)) == "2025-01-09T00:00:00.000000Z"

    def test_round_trip_preserves_instant(self):
        dt = datetime(2025, 6, 30, 23, 59, 59, 1, tzinfo=UTC)

        assert from_iso8601(to_iso8601(dt)) == dt

    def test_iso_strings_sort_chronologically(self):
        earlier = to_iso8601(datetime(2025, 1, 9, 9, 0, tzinfo=UTC))
        later = to_iso8601(datetime(2025, 1, 10, 8, 0, tzinfo=UTC))

        assert sorted([later, earlier]) == [earlier, later]


class TestDisplayDate:
    def test_dd_mm_yyyy(self):
        assert format_display_date("2025-01-09T14:03:11.250000Z") == "09-01-2025"

    def test_display_zone_can_shift_the_day(self):
        """23:30 UTC is already the next day in Tokyo."""
        value = "2025-01-09T23:30:00Z"

        assert format_display_date(value, "UTC") == "09-01-2025"
        assert format_display_date(value, "Asia/Tokyo") == "10-01-2025"
