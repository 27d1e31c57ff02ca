from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD"; None / "" -> None."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s)


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


"""
Expiry semantics:
- An expiry date is compared as its start-of-day instant (00:00 UTC).
- A medicine is expired iff that instant is earlier than 'now', so stock
  expiring today stops being sellable right after midnight.
"""


def is_expired(expiry_date: date, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return datetime.combine(expiry_date, time.min) < now


def expiry_cutoff(now: Optional[datetime] = None) -> date:
    """
    Earliest expiry date that is still sellable at `now`.

    Use as `Medicine.expiry_date < expiry_cutoff(now)` to select expired rows.
    """
    now = now or utcnow()
    if now.time() == time.min:
        return now.date()
    return now.date() + timedelta(days=1)
