import logging
from datetime import date, datetime, timedelta

from flask import Blueprint, request, jsonify, current_app, g

from models import TimeSlot
from models.configuration import get_visibility_weeks
from security.rbac import require_roles, is_staff
from utils.audit import log_event
from utils.bookings import parse_slot_ids
from utils.errors import BookingError, error_response
from utils.serializers import iso_utc, slot_json
from utils.slots import (
    block_time_slots,
    make_slot_available,
    regenerate_time_slots,
    release_time_slots,
    reserve_time_slots,
)
from utils.timezone import local_day_bounds, local_today, to_naive_utc

logger = logging.getLogger(__name__)

timeslots_bp = Blueprint("timeslots", __name__, url_prefix="/api/timeslots")

DEFAULT_RANGE_DAYS = 7


def _parse_date(value: str) -> date:
    # Accept plain dates and full ISO timestamps; only the calendar date matters
    return date.fromisoformat(value.strip()[:10])


def _parse_instant(value: str) -> datetime:
    # "Z" suffix is not understood by fromisoformat on older interpreters
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return to_naive_utc(parsed)


@timeslots_bp.get("")
def list_timeslots():
    today = local_today()
    try:
        start = _parse_date(request.args["startDate"]) if request.args.get("startDate") else today
        end = _parse_date(request.args["endDate"]) if request.args.get("endDate") else start + timedelta(days=DEFAULT_RANGE_DAYS)
    except ValueError:
        return jsonify(error="Invalid date format. Use YYYY-MM-DD"), 400
    if end < start:
        return jsonify(error="endDate must not be before startDate"), 400

    if not is_staff():
        weeks = get_visibility_weeks(current_app.config.get("DEFAULT_VISIBILITY_WEEKS", 4))
        visible_until = today + timedelta(weeks=weeks)
        end = min(end, visible_until)

    slots = []
    if start <= end:
        range_start, _ = local_day_bounds(start)
        _, range_end = local_day_bounds(end)
        slots = (
            TimeSlot.query
            .filter(TimeSlot.start_time >= range_start, TimeSlot.start_time < range_end)
            .order_by(TimeSlot.start_time.asc())
            .all()
        )

    return jsonify(
        startDate=start.isoformat(),
        endDate=end.isoformat(),
        timeSlots=[slot_json(s) for s in slots],
    ), 200


@timeslots_bp.post("/reserve")
def reserve():
    data = request.get_json(silent=True) or {}
    try:
        slot_ids = parse_slot_ids(data.get("timeSlotIds"))
        slots, expiry = reserve_time_slots(slot_ids, enforce_lead_time=not is_staff())
    except BookingError as exc:
        return error_response(exc)

    logger.info("Reserved slots %s until %s", slot_ids, expiry)
    return jsonify(
        message="Time slots reserved",
        timeSlots=[slot_json(s) for s in slots],
        reservationExpiry=iso_utc(expiry),
    ), 200


@timeslots_bp.post("/release")
def release():
    data = request.get_json(silent=True) or {}
    try:
        slot_ids = parse_slot_ids(data.get("timeSlotIds"))
    except BookingError as exc:
        return error_response(exc)

    released = release_time_slots(slot_ids)
    return jsonify(message="Time slots released", released=released), 200


@timeslots_bp.post("/regenerate")
@require_roles("ADMIN", "MANAGER")
def regenerate():
    result = regenerate_time_slots()
    log_event("SLOTS_REGENERATE", user_id=g.user.id, entity="time_slot",
              metadata={"generated": result.generated, "preserved": result.preserved_bookings})
    return jsonify(result.to_dict()), 200


@timeslots_bp.post("/block")
@require_roles("ADMIN", "MANAGER")
def block():
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip()
    if not reason:
        return jsonify(error="Invalid request", details={"reason": "A reason is required"}), 400
    try:
        slot_ids = parse_slot_ids(data.get("timeSlotIds"))
        blocked = block_time_slots(slot_ids, reason)
    except BookingError as exc:
        return error_response(exc)

    log_event("SLOTS_BLOCK", user_id=g.user.id, entity="time_slot",
              metadata={"timeSlotIds": blocked, "reason": reason})
    return jsonify(message="Time slots blocked", blockedSlots=blocked), 200


@timeslots_bp.post("/make-available")
@require_roles("ADMIN", "MANAGER")
def make_available():
    data = request.get_json(silent=True) or {}
    raw = data.get("startTime")
    if not isinstance(raw, str):
        return jsonify(error="Invalid request", details={"startTime": "ISO timestamp required"}), 400
    try:
        start = _parse_instant(raw)
    except ValueError:
        return jsonify(error="Invalid request", details={"startTime": "ISO timestamp required"}), 400

    try:
        slot = make_slot_available(start)
    except BookingError as exc:
        return error_response(exc)

    log_event("SLOT_MAKE_AVAILABLE", user_id=g.user.id, entity="time_slot", entity_id=slot.id)
    return jsonify(slot_json(slot)), 201
