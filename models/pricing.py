from models.db import db, prefixed


class PricingRule(db.Model):
    __tablename__ = prefixed("pricing")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(40), nullable=False, unique=True)  # standard, peak
    price = db.Column(db.Float, nullable=False)
    start_time = db.Column(db.String(8), nullable=True)
    end_time = db.Column(db.String(8), nullable=True)
    apply_to_weekends = db.Column(db.Boolean, nullable=True)
    weekend_multiplier = db.Column(db.Float, nullable=True)
