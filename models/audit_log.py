from models.db import db, prefixed
from utils.timezone import utcnow

class AuditLog(db.Model):
    __tablename__ = prefixed("audit_logs")

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)  # nullable for public/CLI events
    action = db.Column(db.String(80), nullable=False)  # e.g. BOOKING_CREATE, SLOTS_REGENERATE
    entity = db.Column(db.String(80), nullable=True)   # e.g. booking, time_slot
    entity_id = db.Column(db.String(80), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
