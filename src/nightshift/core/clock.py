from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from nightshift.core.config import get_settings


def utcnow() -> datetime:
    return datetime.now(UTC)


def local_now(tz_name: str | None = None) -> datetime:
    """Current wall-clock time in the marketplace zone, as a naive datetime.

    Job dates and times carry no zone, so they are compared against this value.
    """
    tz = ZoneInfo(tz_name or get_settings().timezone)
    return datetime.now(tz).replace(tzinfo=None)
