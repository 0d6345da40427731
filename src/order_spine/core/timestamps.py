"""
UTC timestamp helpers.

Order records store their creation instant as ISO-8601 UTC text with a
``Z`` suffix (``2025-01-09T14:03:11.250000Z``).  Listings render that
instant as a ``dd-MM-yyyy`` date in a configurable display zone.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

DISPLAY_DATE_FORMAT = "%d-%m-%Y"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_iso8601(dt: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC with a ``Z`` suffix.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def from_iso8601(value: str) -> datetime:
    """Parse ISO-8601 text (``Z`` or offset suffix) into an aware datetime."""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_display_date(value: str, tz: str = "UTC") -> str:
    """Render a stored instant as ``dd-MM-yyyy`` in the ``tz`` zone."""
    return from_iso8601(value).astimezone(ZoneInfo(tz)).strftime(DISPLAY_DATE_FORMAT)
