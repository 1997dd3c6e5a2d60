from models.db import db, prefixed
from utils.timezone import utcnow

MODE_ENFORCED = "enforced"
MODE_BOOKING_BASED = "booking_based"
MODE_OFF = "off"
RESTRICTION_MODES = (MODE_ENFORCED, MODE_BOOKING_BASED, MODE_OFF)


class LeadTimeSettings(db.Model):
    __tablename__ = prefixed("lead_time_settings")

    id = db.Column(db.Integer, primary_key=True)
    restriction_mode = db.Column(db.String(20), nullable=False, default=MODE_OFF)
    lead_time_days = db.Column(db.Integer, nullable=False, default=0)
    operator_on_site = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
