from utils.bookings import total_price
from utils.timezone import ensure_aware_utc, format_local


def iso_utc(dt):
    return ensure_aware_utc(dt).isoformat() if dt else None


def slot_json(s):
    return {
        "id": s.id,
        "startTime": iso_utc(s.start_time),
        "endTime": iso_utc(s.end_time),
        "localStartTime": format_local(s.start_time, "%Y-%m-%dT%H:%M"),
        "price": s.price,
        "status": s.status,
        "reservationExpiry": iso_utc(s.reservation_expiry),
    }


def booking_json(b):
    return {
        "id": b.id,
        "reference": b.reference,
        "customerName": b.customer_name,
        "phoneNumber": b.phone_number,
        "email": b.email,
        "experienceLevel": b.experience_level,
        "equipmentRental": b.equipment_rental,
        "createdAt": iso_utc(b.created_at),
    }


def booking_detail_json(b):
    slots = list(b.time_slots)
    out = booking_json(b)
    out["timeSlots"] = [slot_json(s) for s in slots]
    out["totalPrice"] = total_price(b, slots)
    return out


def operating_hours_json(h):
    return {
        "id": h.id,
        "dayOfWeek": h.day_of_week,
        "openTime": h.open_time,
        "closeTime": h.close_time,
        "isClosed": h.is_closed,
    }


def pricing_json(p):
    return {
        "id": p.id,
        "name": p.name,
        "price": p.price,
        "startTime": p.start_time,
        "endTime": p.end_time,
        "applyToWeekends": p.apply_to_weekends,
        "weekendMultiplier": p.weekend_multiplier,
    }


def lead_time_json(s):
    return {
        "id": s.id,
        "restrictionMode": s.restriction_mode,
        "leadTimeDays": s.lead_time_days,
        "operatorOnSite": s.operator_on_site,
        "updatedAt": iso_utc(s.updated_at),
    }


def user_json(u):
    return {
        "id": u.id,
        "email": u.email,
        "username": u.username,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "roles": sorted(r.name for r in u.roles),
        "isActive": u.is_active,
        "createdAt": iso_utc(u.created_at),
        "lastLoginAt": iso_utc(u.last_login_at),
    }
