from __future__ import annotations

from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def store_tz(name: str | None = None) -> tzinfo:
    """
    Resolve the shop timezone.

    Falls back to the configured STORE_TIMEZONE of the current app, then UTC.
    """
    if name is None:
        try:
            from flask import current_app
            name = current_app.config.get("STORE_TIMEZONE")
        except RuntimeError:
            name = None
    return ZoneInfo(name) if name else timezone.utc


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - naive strings are interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(s))


def parse_local_datetime(value: Optional[str], tz: tzinfo) -> Optional[datetime]:
    """
    Like parse_iso_datetime, but a string without an offset is wall-clock
    time in `tz` (a <input type="datetime-local"> value). Returns UTC-naive.
    """
    if value is None or not value.strip():
        return None
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    parsed = datetime.fromisoformat(s)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return to_utc_naive(parsed)


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(dt: datetime, tz: tzinfo) -> datetime:
    """UTC-naive (or aware) datetime -> aware datetime in the shop timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def local_day_bounds(day: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """
    [start, end) of the shop-local calendar day containing `day`,
    returned as UTC-naive datetimes for querying.
    """
    local = to_local(day, tz)
    start = datetime.combine(local.date(), time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return to_utc_naive(start), to_utc_naive(end)


def local_month_start(day: datetime, tz: tzinfo) -> datetime:
    local = to_local(day, tz)
    start = datetime.combine(local.date().replace(day=1), time.min, tzinfo=tz)
    return to_utc_naive(start)


def local_time_today(now: datetime, tz: tzinfo, hour: int, minute: int = 0) -> datetime:
    """Today's hour:minute in shop time, as UTC-naive."""
    local = to_local(now, tz)
    at = datetime.combine(local.date(), time(hour, minute), tzinfo=tz)
    return to_utc_naive(at)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
