from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


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


def local_midnight_utc(now_utc: datetime, tz_name: str, days_back: int = 0) -> datetime:
    """
    Midnight (in tz_name) of the local date `days_back` days before now_utc,
    returned as a UTC-naive datetime so it compares against stored timestamps.
    """
    tz = ZoneInfo(tz_name)
    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    local_now = now_utc.astimezone(tz)
    local_date = local_now.date().toordinal() - days_back
    midnight = datetime.fromordinal(local_date).replace(tzinfo=tz)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)


def format_cents(cents: int | None, symbol: str = "") -> str:
    """Render integer cents as a fixed two-decimal amount, e.g. 45000 -> 'R450.00'."""
    cents = int(cents or 0)
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{symbol}{cents // 100}.{cents % 100:02d}"
