from datetime import datetime, timezone as dt_timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(dt_timezone.utc)


def to_utc_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC).
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def isoformat_utc(dt: Optional[datetime] = None) -> str:
    """
    Millisecond ISO8601 with a trailing Z, the shape Sahha and the dashboard exchange
    (e.g. 2025-09-16T05:51:28.123Z).
    """
    dt = to_utc_aware(dt) if dt is not None else now_utc()
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def isoformat_now() -> str:
    return isoformat_utc(now_utc())
