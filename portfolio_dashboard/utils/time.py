"""Time utilities (server-local day boundaries, epoch conversions)."""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from portfolio_dashboard.config import settings


def local_tz() -> tzinfo:
    """Configured zone, or the server-local zone when none is set."""
    if settings.TIMEZONE:
        return ZoneInfo(settings.TIMEZONE)
    return datetime.now().astimezone().tzinfo  # type: ignore[return-value]


def now_local(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(tz or local_tz())


def today_key(now: Optional[datetime] = None) -> str:
    """Calendar date of ``now`` in the local zone, as YYYY-MM-DD."""
    now = now or now_local()
    return now.date().isoformat()


def end_of_day(now: Optional[datetime] = None) -> datetime:
    """First instant of the next local day."""
    now = now or now_local()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_epoch_seconds() -> int:
    return int(utc_now().timestamp())


def parse_timestamp(value: Optional[str], default: Optional[datetime] = None) -> datetime:
    """
    Parse an ISO date or datetime string.

    Naive values are read as UTC, matching how plain dates such as
    ``2023-01-01`` are stored by the admin forms. Unparseable or empty
    values fall back to ``default`` (or now).
    """
    fallback = default or utc_now()
    if not value or not isinstance(value, str):
        return fallback
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_epoch_seconds(value: Optional[str], default: Optional[datetime] = None) -> int:
    return int(parse_timestamp(value, default).timestamp())
