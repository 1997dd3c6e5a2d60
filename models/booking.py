from models.db import db, prefixed
from utils.timezone import utcnow

EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced")


class BookingTimeSlot(db.Model):
    __tablename__ = prefixed("booking_time_slots")

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey(prefixed("bookings.id")), nullable=False, index=True)
    time_slot_id = db.Column(db.Integer, db.ForeignKey(prefixed("time_slots.id")), nullable=False, index=True)

    __table_args__ = (
        # A slot belongs to at most one booking
        db.UniqueConstraint("time_slot_id", name=prefixed("uq_booking_time_slot_once")),
    )


class Booking(db.Model):
    __tablename__ = prefixed("bookings")

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(120), nullable=False)
    phone_number = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    experience_level = db.Column(db.String(20), nullable=False, default="beginner")
    equipment_rental = db.Column(db.Boolean, nullable=False, default=False)

    reference = db.Column(db.String(16), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    time_slots = db.relationship(
        "TimeSlot",
        secondary=prefixed("booking_time_slots"),
        order_by="TimeSlot.start_time",
        viewonly=True,
    )
