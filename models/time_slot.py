from models.db import db, prefixed

SLOT_AVAILABLE = "available"
SLOT_RESERVED = "reserved"
SLOT_BOOKED = "booked"


class TimeSlot(db.Model):
    __tablename__ = prefixed("time_slots")

    id = db.Column(db.Integer, primary_key=True)

    # naive UTC instants
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    price = db.Column(db.Integer, nullable=False, default=0)  # whole currency units
    status = db.Column(db.String(20), nullable=False, default=SLOT_AVAILABLE, index=True)
    reservation_expiry = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # One slot per start instant; regeneration relies on this
        db.UniqueConstraint("start_time", name=prefixed("uq_time_slot_start")),
    )

    def __repr__(self):
        return f"<TimeSlot id={self.id} start={self.start_time} status={self.status}>"
