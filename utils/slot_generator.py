"""
Time-slot generation from weekly operating hours and pricing rules.

Works on plain inputs (any objects exposing the OperatingHours / PricingRule
attributes) and returns plain data, so it runs without a database.
"""
import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from utils.timezone import from_local, format_local, js_weekday, park_tz, to_local, to_naive_utc

logger = logging.getLogger(__name__)

SLOT_MINUTES = 30
DEFAULT_STANDARD_PRICE = 20

# Weekday evenings [17:00, 22:00) local are peak; weekends are peak all day
PEAK_START_HOUR = 17
PEAK_END_HOUR = 22

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class OperatingHoursError(ValueError):
    pass


@dataclass
class GeneratedSlot:
    start_time: datetime  # aware UTC
    end_time: datetime    # aware UTC
    price: int
    status: str = "available"


def parse_time_of_day(value) -> time:
    """Parse ``HH:MM`` / ``HH:MM:SS`` (or pass a ``time`` through)."""
    if isinstance(value, time):
        return value
    match = _TIME_RE.match((value or "").strip()) if isinstance(value, str) else None
    if not match:
        raise OperatingHoursError(f"Invalid time of day: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise OperatingHoursError(f"Invalid time of day: {value!r}")
    return time(hour, minute, second)


def is_peak(day_of_week: int, hour: int) -> bool:
    if day_of_week in (0, 6):
        return True
    return PEAK_START_HOUR <= hour < PEAK_END_HOUR


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_price(pricing_rules, day_of_week: int, hour: int) -> int:
    standard = next((p for p in pricing_rules if p.name == "standard"), None)
    peak = next((p for p in pricing_rules if p.name == "peak"), None)

    price = standard.price if standard else DEFAULT_STANDARD_PRICE
    if peak and is_peak(day_of_week, hour):
        price = peak.price
    return _round_half_up(price)


def _slots_for_day(day: date, hours, pricing_rules, tz, step: timedelta) -> list[GeneratedSlot]:
    open_t = parse_time_of_day(hours.open_time)
    close_t = parse_time_of_day(hours.close_time)

    # Step in UTC so slots stay one step long across DST transitions
    opening = from_local(datetime.combine(day, open_t), tz)
    closing = from_local(datetime.combine(day, close_t), tz)

    slots = []
    slot_start = opening
    # the last slot has to finish by closing time
    while slot_start + step <= closing:
        local_start = to_local(slot_start, tz)
        slots.append(GeneratedSlot(
            start_time=slot_start,
            end_time=slot_start + step,
            price=resolve_price(pricing_rules, js_weekday(local_start.date()), local_start.hour),
        ))
        slot_start += step
    return slots


def generate_time_slots(start_date: date, end_date: date, operating_hours, pricing_rules,
                        tz=None, slot_minutes: int = SLOT_MINUTES) -> list[GeneratedSlot]:
    """Generate bookable slots for every local day in [start_date, end_date].

    Closed days and weekdays without operating hours produce nothing. A day
    whose hours cannot be parsed is skipped and logged rather than filled
    with guessed hours.
    """
    tz = tz or park_tz()
    step = timedelta(minutes=slot_minutes)
    by_weekday = {h.day_of_week: h for h in operating_hours}

    slots: list[GeneratedSlot] = []
    day = start_date
    while day <= end_date:
        hours = by_weekday.get(js_weekday(day))
        if hours is None:
            logger.debug("No operating hours defined for %s", day.isoformat())
        elif hours.is_closed:
            logger.debug("%s is marked as closed", day.isoformat())
        else:
            try:
                slots.extend(_slots_for_day(day, hours, pricing_rules, tz, step))
            except OperatingHoursError as exc:
                logger.error("Skipping %s: %s", day.isoformat(), exc)
        day += timedelta(days=1)

    logger.info("Generated %d time slots for %s..%s", len(slots), start_date, end_date)
    return slots


def drop_preserved_instants(slots, preserved_starts) -> tuple[list[GeneratedSlot], int]:
    """Remove generated slots that start where a preserved slot already starts."""
    taken = {to_naive_utc(s) for s in preserved_starts}
    kept = [s for s in slots if to_naive_utc(s.start_time) not in taken]
    return kept, len(slots) - len(kept)


def find_conflicts(new_slots, existing_slots) -> list[dict]:
    """Existing slots that overlap any of the new ones (sanity check after regeneration)."""
    conflicts = []
    for existing in existing_slots:
        existing_start = to_naive_utc(existing.start_time)
        existing_end = to_naive_utc(existing.end_time)
        for new in new_slots:
            new_start = to_naive_utc(new.start_time)
            new_end = to_naive_utc(new.end_time)
            if new_start < existing_end and new_end > existing_start:
                conflicts.append({
                    "id": existing.id,
                    "startTime": existing_start.isoformat(),
                    "conflictTime": format_local(existing_start),
                })
                break
    return conflicts
