from collections import Counter
from datetime import date, timedelta

from flask import current_app

from models import Booking, TimeSlot
from models.operating_hours import WEEKDAY_NAMES
from models.time_slot import SLOT_BOOKED
from utils.errors import ValidationError
from utils.timezone import js_weekday, local_midnight, local_today, to_local, to_naive_utc

PERIODS = ("day", "week", "month")


def period_bounds(period: str, today: date = None):
    """Naive UTC [start, end) for the local day, Sunday-based week or month containing today."""
    today = today or local_today()
    if period == "day":
        first, last = today, today + timedelta(days=1)
    elif period == "week":
        first = today - timedelta(days=js_weekday(today))
        last = first + timedelta(days=7)
    elif period == "month":
        first = today.replace(day=1)
        last = (first + timedelta(days=32)).replace(day=1)
    else:
        raise ValidationError("Invalid period", {"period": f"Must be one of: {', '.join(PERIODS)}"})
    return to_naive_utc(local_midnight(first)), to_naive_utc(local_midnight(last))


def _pct(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0


def get_booking_stats(start, end) -> dict:
    bookings = (
        Booking.query
        .filter(Booking.created_at >= start, Booking.created_at < end)
        .all()
    )
    slot_minutes = current_app.config.get("SLOT_MINUTES", 30)

    booked_slots = 0
    income = 0
    by_day = Counter()
    by_hour = Counter()
    for booking in bookings:
        for slot in booking.time_slots:
            booked_slots += 1
            income += slot.price or 0
            local = to_local(slot.start_time)
            by_day[js_weekday(local.date())] += 1
            by_hour[f"{local.hour:02d}:00"] += 1

    slots_in_range = TimeSlot.query.filter(TimeSlot.start_time >= start, TimeSlot.start_time < end)
    possible = slots_in_range.count()
    booked_in_range = slots_in_range.filter(TimeSlot.status == SLOT_BOOKED).count()

    popular = sorted(by_hour.items(), key=lambda item: (-item[1], item[0]))[:5]

    return {
        "bookingRate": _pct(booked_in_range, possible),
        "totalBookings": len(bookings),
        "forecastedIncome": income,
        "avgSessionLength": (booked_slots * slot_minutes / len(bookings)) if bookings else 0,
        "bookingsByDay": [
            {"day": name, "count": by_day[i], "percentage": _pct(by_day[i], booked_slots)}
            for i, name in enumerate(WEEKDAY_NAMES)
        ],
        "popularTimeSlots": [
            {"time": time_key, "percentage": _pct(count, booked_slots)}
            for time_key, count in popular
        ],
    }
