"""
Database-backed slot inventory: initial generation, regeneration,
reservations and staff calendar edits.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from flask import current_app

from models import db, OperatingHours, PricingRule, TimeSlot
from models.configuration import set_config_value
from models.time_slot import SLOT_AVAILABLE, SLOT_BOOKED, SLOT_RESERVED
from utils.errors import LeadTimeError, SlotUnavailableError, SlotsAlreadyBookedError
from utils.lead_time import ensure_lead_time
from utils.slot_generator import (
    SLOT_MINUTES,
    drop_preserved_instants,
    find_conflicts,
    generate_time_slots,
    resolve_price,
)
from utils.timezone import (
    format_local,
    js_weekday,
    local_midnight,
    local_today,
    to_local,
    to_naive_utc,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass
class RegenerationResult:
    preserved_bookings: int
    duplicates_prevented: int
    generated: int
    conflicts: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "preservedBookings": self.preserved_bookings,
            "duplicatesPrevented": self.duplicates_prevented,
            "generated": self.generated,
            "conflicts": self.conflicts,
        }


def _slot_minutes() -> int:
    return current_app.config.get("SLOT_MINUTES", SLOT_MINUTES)


def generation_window(today: date = None) -> tuple[date, date]:
    today = today or local_today()
    horizon_days = current_app.config.get("GENERATION_HORIZON_DAYS", 28)
    return today, today + timedelta(days=horizon_days)


def _generate(start: date, end: date):
    return generate_time_slots(
        start,
        end,
        OperatingHours.query.all(),
        PricingRule.query.all(),
        slot_minutes=_slot_minutes(),
    )


def _add_generated(slots) -> None:
    db.session.add_all([
        TimeSlot(
            start_time=to_naive_utc(s.start_time),
            end_time=to_naive_utc(s.end_time),
            price=s.price,
            status=s.status,
        )
        for s in slots
    ])


def generate_initial_slots(today: date = None) -> int:
    """Fill the booking horizon on first start. No-op once any slot exists."""
    if TimeSlot.query.first() is not None:
        return 0

    start, end = generation_window(today)
    logger.info("Generating time slots from %s to %s", start, end)
    slots = _generate(start, end)
    _add_generated(slots)
    db.session.commit()
    return len(slots)


def regenerate_time_slots(today: date = None) -> RegenerationResult:
    """Rebuild future inventory from the current configuration.

    Booked slots from local midnight today onwards are kept as they are and
    no generated slot is inserted at their start instant. Everything else in
    that range is deleted and regenerated in one transaction.
    """
    today = today or local_today()
    horizon_start = to_naive_utc(local_midnight(today))

    try:
        booked = (
            TimeSlot.query
            .filter(TimeSlot.start_time >= horizon_start, TimeSlot.status == SLOT_BOOKED)
            .all()
        )
        logger.info("Preserving %d booked slots during regeneration", len(booked))

        (
            TimeSlot.query
            .filter(TimeSlot.start_time >= horizon_start, TimeSlot.status != SLOT_BOOKED)
            .delete(synchronize_session=False)
        )

        start, end = generation_window(today)
        generated = _generate(start, end)
        kept, prevented = drop_preserved_instants(generated, [s.start_time for s in booked])
        _add_generated(kept)

        conflicts = find_conflicts(kept, booked)
        for conflict in conflicts:
            logger.warning("Regenerated slot overlaps booked slot %s at %s", conflict["id"], conflict["conflictTime"])

        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Time slot regeneration failed")
        raise

    return RegenerationResult(
        preserved_bookings=len(booked),
        duplicates_prevented=prevented,
        generated=len(kept),
        conflicts=conflicts,
    )


def load_slots(slot_ids, lock: bool = True):
    """Return ({id: slot}, missing_ids) for the requested ids."""
    q = TimeSlot.query.filter(TimeSlot.id.in_(slot_ids))
    if lock:
        q = q.with_for_update()
    found = {s.id: s for s in q.all()}
    return found, set(slot_ids) - set(found)


def _is_reservable(slot: TimeSlot, now) -> bool:
    if slot.start_time <= now:
        return False
    if slot.status == SLOT_AVAILABLE:
        return True
    # Expired holds are only noticed when someone else asks for the slot
    return (
        slot.status == SLOT_RESERVED
        and slot.reservation_expiry is not None
        and slot.reservation_expiry <= now
    )


def reserve_time_slots(slot_ids, now=None, enforce_lead_time: bool = False):
    """Hold slots for RESERVATION_TTL_MINUTES. Returns (slots, expiry)."""
    now = now or utcnow()
    slot_ids = list(dict.fromkeys(slot_ids))

    found, missing = load_slots(slot_ids)
    unavailable = missing | {s.id for s in found.values() if not _is_reservable(s, now)}
    if unavailable:
        db.session.rollback()
        raise SlotUnavailableError("One or more selected time slots are not available", unavailable)

    if enforce_lead_time:
        try:
            ensure_lead_time(found.values(), now=now)
        except LeadTimeError:
            db.session.rollback()
            raise

    expiry = now + timedelta(minutes=current_app.config.get("RESERVATION_TTL_MINUTES", 10))
    for slot in found.values():
        slot.status = SLOT_RESERVED
        slot.reservation_expiry = expiry
    db.session.commit()

    return [found[i] for i in slot_ids], expiry


def release_time_slots(slot_ids) -> int:
    slots = (
        TimeSlot.query
        .filter(TimeSlot.id.in_(slot_ids), TimeSlot.status == SLOT_RESERVED)
        .all()
    )
    for slot in slots:
        slot.status = SLOT_AVAILABLE
        slot.reservation_expiry = None
    db.session.commit()
    return len(slots)


def block_time_slots(slot_ids, reason: str) -> list[int]:
    """Take slots off the calendar. Booked slots cannot be blocked."""
    found, _missing = load_slots(slot_ids)
    booked = {s.id for s in found.values() if s.status == SLOT_BOOKED}
    if booked:
        db.session.rollback()
        raise SlotsAlreadyBookedError(booked)

    for slot in found.values():
        set_config_value(f"block_reason_{slot.id}", reason)
        db.session.delete(slot)
    db.session.commit()
    return sorted(found)


def make_slot_available(start_time) -> TimeSlot:
    """Put a single slot back on the calendar at a UTC start instant."""
    start = to_naive_utc(start_time)
    existing = TimeSlot.query.filter_by(start_time=start).first()
    if existing is not None:
        raise SlotUnavailableError(
            f"A time slot already exists at {format_local(start)}", [existing.id]
        )

    local_start = to_local(start)
    price = resolve_price(PricingRule.query.all(), js_weekday(local_start.date()), local_start.hour)
    slot = TimeSlot(
        start_time=start,
        end_time=start + timedelta(minutes=_slot_minutes()),
        price=price,
        status=SLOT_AVAILABLE,
    )
    db.session.add(slot)
    db.session.commit()
    return slot
