"""
UTC <-> park local time conversions.

Slots are stored as naive UTC datetimes. Everything a customer or operator
sees (opening hours, day boundaries, lead-time day counts) is in the park's
civil timezone, which observes daylight-saving time.

Local wall times that are ambiguous (the repeated hour in autumn) resolve
to the earlier, summer-time occurrence; wall times that do not exist (the
skipped hour in spring) are shifted forward by the gap. Both follow from
interpreting naive local datetimes with ``fold=0``.
"""
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

DEFAULT_PARK_TIMEZONE = "Europe/Riga"


def park_tz() -> ZoneInfo:
    name = DEFAULT_PARK_TIMEZONE
    if has_app_context():
        name = current_app.config.get("PARK_TIMEZONE", DEFAULT_PARK_TIMEZONE)
    return ZoneInfo(name)


def utcnow() -> datetime:
    """Naive UTC now, matching how instants are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_aware_utc(dt: datetime) -> datetime:
    """Make any datetime offset-aware in UTC (attach UTC if naive)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    return ensure_aware_utc(dt).replace(tzinfo=None)


def to_local(instant: datetime, tz: ZoneInfo = None) -> datetime:
    """UTC instant (naive means UTC) -> aware local datetime."""
    return ensure_aware_utc(instant).astimezone(tz or park_tz())


def from_local(local: datetime, tz: ZoneInfo = None) -> datetime:
    """Local wall time -> aware UTC instant.

    A naive ``local`` is read as park wall time; an aware one is converted
    as-is, so ``from_local(to_local(x)) == x`` holds for every instant.
    """
    if local.tzinfo is None:
        local = local.replace(tzinfo=tz or park_tz(), fold=0)
    return local.astimezone(timezone.utc)


def format_local(instant: datetime, pattern: str = "%Y-%m-%d %H:%M", tz: ZoneInfo = None) -> str:
    return to_local(instant, tz).strftime(pattern)


def local_today(now: datetime = None, tz: ZoneInfo = None) -> date:
    return to_local(now or utcnow(), tz).date()


def local_midnight(day: date, tz: ZoneInfo = None) -> datetime:
    """Aware UTC instant of local 00:00 on ``day``."""
    return from_local(datetime.combine(day, time(0, 0)), tz)


def local_day_bounds(day: date, tz: ZoneInfo = None) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) covering the local calendar day."""
    start = local_midnight(day, tz)
    end = local_midnight(day + timedelta(days=1), tz)
    return to_naive_utc(start), to_naive_utc(end)


def js_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday, the convention operating hours use."""
    return (day.weekday() + 1) % 7
