from flask import Blueprint, request, jsonify, g

from models import Booking
from security.rbac import require_roles
from utils.audit import log_event
from utils.auth_context import current_user_id
from utils.bookings import create_admin_booking, create_booking, delete_booking
from utils.emailer import notify_booking_cancelled, notify_booking_created
from utils.errors import BookingError, error_response
from utils.serializers import booking_detail_json

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")


def _created(booking: Booking, action: str, user_id=None):
    detail = booking_detail_json(booking)
    log_event(action, user_id=user_id, entity="booking", entity_id=booking.id,
              metadata={"reference": booking.reference, "timeSlotIds": [s["id"] for s in detail["timeSlots"]]})
    notify_booking_created(booking, booking.time_slots, detail["totalPrice"])
    return jsonify(detail), 201


@bookings_bp.post("")
def create():
    data = request.get_json(silent=True) or {}
    try:
        booking = create_booking(data)
    except BookingError as exc:
        return error_response(exc)
    return _created(booking, "BOOKING_CREATE", user_id=current_user_id())


@bookings_bp.post("/admin")
@require_roles("ADMIN", "MANAGER")
def create_for_customer():
    data = request.get_json(silent=True) or {}
    try:
        booking = create_admin_booking(data)
    except BookingError as exc:
        return error_response(exc)
    return _created(booking, "BOOKING_CREATE_ADMIN", user_id=g.user.id)


@bookings_bp.get("")
@require_roles("ADMIN", "MANAGER")
def list_bookings():
    bookings = Booking.query.order_by(Booking.created_at.desc()).all()
    return jsonify([booking_detail_json(b) for b in bookings]), 200


@bookings_bp.get("/<string:reference>")
def get_by_reference(reference):
    booking = Booking.query.filter_by(reference=reference.strip().upper()).first()
    if not booking:
        return jsonify(error="Booking not found"), 404
    return jsonify(booking_detail_json(booking)), 200


@bookings_bp.delete("/<int:booking_id>")
@require_roles("ADMIN", "MANAGER")
def delete(booking_id):
    summary = delete_booking(booking_id)
    if summary is None:
        return jsonify(error="Booking not found"), 404

    log_event("BOOKING_DELETE", user_id=g.user.id, entity="booking", entity_id=summary["id"],
              metadata={"reference": summary["reference"], "timeSlotIds": summary["time_slot_ids"]})
    notify_booking_cancelled(summary["reference"], summary["customer_name"])
    return jsonify(
        message="Booking deleted",
        reference=summary["reference"],
        releasedSlots=summary["time_slot_ids"],
    ), 200
