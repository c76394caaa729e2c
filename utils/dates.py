"""Helpers for normalising expense timestamps and bucketing them into days."""
import logging
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Returns an aware UTC datetime. Naive values are assumed to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def load_timezone(name: str) -> tzinfo:
    """Resolves an IANA zone name, raising ValueError if it is unknown."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Unknown time zone '{name}': {e}")
        raise ValueError(f"Unknown time zone: {name}") from e


def local_day(value: datetime, tz: tzinfo) -> date:
    """Calendar day of `value` as seen from `tz`."""
    return to_utc(value).astimezone(tz).date()
