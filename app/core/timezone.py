"""
Timezone helpers.

Everything is stored in UTC. Datetimes coming from the API without tzinfo
are assumed to be UTC.
"""

from datetime import datetime, timezone
from typing import Optional

TZ_UTC = timezone.utc


def utc_now() -> datetime:
    """Current datetime in UTC (timezone-aware)."""
    return datetime.now(TZ_UTC)


def to_utc(dt: datetime) -> datetime:
    """Converts to UTC; naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=TZ_UTC)
    return dt.astimezone(TZ_UTC)


def parse_datetime(value) -> Optional[datetime]:
    """
    Parses an ISO string from the database into an aware datetime.

    Accepts datetimes as-is and the "Z" suffix PostgREST returns.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string in UTC, or None."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()
