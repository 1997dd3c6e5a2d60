from models.db import db, prefixed

# 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class OperatingHours(db.Model):
    __tablename__ = prefixed("operating_hours")

    id = db.Column(db.Integer, primary_key=True)
    day_of_week = db.Column(db.Integer, nullable=False, unique=True)
    open_time = db.Column(db.String(8), nullable=False)   # local HH:MM
    close_time = db.Column(db.String(8), nullable=False)  # local HH:MM
    is_closed = db.Column(db.Boolean, nullable=False, default=False)
