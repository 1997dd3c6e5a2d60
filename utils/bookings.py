import logging
import re
import secrets
import string

from flask import current_app

from models import db, Booking, BookingTimeSlot, TimeSlot
from models.booking import EXPERIENCE_LEVELS
from models.time_slot import SLOT_AVAILABLE, SLOT_BOOKED, SLOT_RESERVED
from utils.errors import (
    LeadTimeError,
    SlotUnavailableError,
    SlotsAlreadyBookedError,
    ValidationError,
)
from utils.lead_time import ensure_lead_time
from utils.slots import load_slots
from utils.timezone import utcnow

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "WB-"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 8

_PHONE_RE = re.compile(r"^[0-9]{10,15}$")


def generate_reference() -> str:
    for _ in range(5):
        ref = REFERENCE_PREFIX + "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
        if Booking.query.filter_by(reference=ref).first() is None:
            return ref
    raise RuntimeError("Could not allocate a unique booking reference")


def parse_slot_ids(value) -> list[int]:
    if not isinstance(value, list) or not value:
        raise ValidationError("Invalid request", {"timeSlotIds": "Select at least one time slot"})
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        raise ValidationError("Invalid request", {"timeSlotIds": "Time slot ids must be integers"})
    return list(dict.fromkeys(value))


def validate_booking_payload(data: dict) -> dict:
    errors = {}

    full_name = data.get("fullName")
    if not isinstance(full_name, str) or len(full_name.strip()) < 2:
        errors["fullName"] = "Name must be at least 2 characters"

    phone = data.get("phoneNumber")
    if not isinstance(phone, str) or not _PHONE_RE.match(phone):
        errors["phoneNumber"] = "Phone number must be between 10-15 digits"

    level = data.get("experienceLevel")
    if level not in EXPERIENCE_LEVELS:
        errors["experienceLevel"] = f"Must be one of: {', '.join(EXPERIENCE_LEVELS)}"

    rental = data.get("equipmentRental", False)
    if not isinstance(rental, bool):
        errors["equipmentRental"] = "Must be true or false"

    email = data.get("email")
    if email is not None and (not isinstance(email, str) or "@" not in email or len(email) > 255):
        errors["email"] = "Invalid email"

    slot_ids = None
    try:
        slot_ids = parse_slot_ids(data.get("timeSlotIds"))
    except ValidationError as exc:
        errors.update(exc.payload["details"])

    if errors:
        raise ValidationError("Invalid booking data", errors)

    return {
        "customer_name": full_name.strip(),
        "phone_number": phone,
        "email": email.strip().lower() if email else None,
        "experience_level": level,
        "equipment_rental": rental,
        "time_slot_ids": slot_ids,
    }


def total_price(booking: Booking, slots) -> int:
    total = sum(s.price for s in slots)
    if booking.equipment_rental:
        total += current_app.config.get("EQUIPMENT_RENTAL_PRICE", 30)
    return total


def _persist_booking(cleaned: dict, slots) -> Booking:
    booking = Booking(
        customer_name=cleaned["customer_name"],
        phone_number=cleaned["phone_number"],
        email=cleaned["email"],
        experience_level=cleaned["experience_level"],
        equipment_rental=cleaned["equipment_rental"],
        reference=generate_reference(),
    )
    db.session.add(booking)
    db.session.flush()

    for slot in slots:
        slot.status = SLOT_BOOKED
        slot.reservation_expiry = None
        db.session.add(BookingTimeSlot(booking_id=booking.id, time_slot_id=slot.id))

    db.session.commit()
    logger.info("Booking %s created for %d slots", booking.reference, len(slots))
    return booking


def create_booking(data: dict, now=None) -> Booking:
    """Confirm a public booking for slots the customer has reserved.

    Every slot must still hold an unexpired reservation, and each slot's
    local date has to pass the lead-time policy.
    """
    cleaned = validate_booking_payload(data)
    now = now or utcnow()

    found, missing = load_slots(cleaned["time_slot_ids"])
    invalid = set(missing)
    for slot in found.values():
        if slot.status != SLOT_RESERVED:
            invalid.add(slot.id)
        elif slot.reservation_expiry is None or slot.reservation_expiry <= now:
            invalid.add(slot.id)
    if invalid:
        db.session.rollback()
        raise SlotUnavailableError("One or more selected time slots are no longer available", invalid)

    try:
        ensure_lead_time(found.values(), now=now)
    except LeadTimeError:
        db.session.rollback()
        raise

    return _persist_booking(cleaned, [found[i] for i in cleaned["time_slot_ids"]])


def create_admin_booking(data: dict) -> Booking:
    """Staff booking: no reservation or lead time needed, but never double-books."""
    cleaned = validate_booking_payload(data)

    found, missing = load_slots(cleaned["time_slot_ids"])
    if missing:
        db.session.rollback()
        raise SlotUnavailableError("One or more selected time slots do not exist", missing)

    booked = {s.id for s in found.values() if s.status == SLOT_BOOKED}
    if booked:
        db.session.rollback()
        raise SlotsAlreadyBookedError(booked)

    return _persist_booking(cleaned, [found[i] for i in cleaned["time_slot_ids"]])


def delete_booking(booking_id: int):
    """Delete a booking and put its slots back on sale.

    Returns a summary of what was deleted, or None when the booking does not exist.
    """
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        return None

    links = BookingTimeSlot.query.filter_by(booking_id=booking.id).all()
    slot_ids = [link.time_slot_id for link in links]
    for link in links:
        db.session.delete(link)
    db.session.flush()

    if slot_ids:
        (
            TimeSlot.query
            .filter(TimeSlot.id.in_(slot_ids))
            .update({"status": SLOT_AVAILABLE, "reservation_expiry": None}, synchronize_session=False)
        )

    summary = {
        "id": booking.id,
        "reference": booking.reference,
        "customer_name": booking.customer_name,
        "time_slot_ids": slot_ids,
    }
    db.session.delete(booking)
    db.session.commit()
    logger.info("Booking %s deleted, %d slots released", summary["reference"], len(slot_ids))
    return summary
