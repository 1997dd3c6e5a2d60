import logging

from models import db, Configuration, LeadTimeSettings, OperatingHours, PricingRule
from models.user import Role
from models.lead_time_settings import MODE_OFF

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ["ATHLETE", "MANAGER", "ADMIN"]

DEFAULT_OPEN_TIME = "08:00"
DEFAULT_CLOSE_TIME = "22:00"
DEFAULT_CLOSED_DAYS = {1}  # Mondays

DEFAULT_PRICING = [
    {"name": "standard", "price": 50, "start_time": None, "end_time": None, "apply_to_weekends": False},
    {"name": "peak", "price": 60, "start_time": "17:00", "end_time": "22:00", "apply_to_weekends": True},
]


def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()


def seed_defaults(visibility_weeks: int = 4):
    """Create default park configuration rows that do not exist yet. Idempotent."""
    if OperatingHours.query.first() is None:
        for day in range(7):
            db.session.add(OperatingHours(
                day_of_week=day,
                open_time=DEFAULT_OPEN_TIME,
                close_time=DEFAULT_CLOSE_TIME,
                is_closed=day in DEFAULT_CLOSED_DAYS,
            ))
        logger.info("Default operating hours created")

    if PricingRule.query.first() is None:
        for rule in DEFAULT_PRICING:
            db.session.add(PricingRule(**rule))
        logger.info("Default pricing created")

    if Configuration.query.filter_by(name="visibility_weeks").first() is None:
        db.session.add(Configuration(name="visibility_weeks", value=str(visibility_weeks)))

    if LeadTimeSettings.query.first() is None:
        db.session.add(LeadTimeSettings(restriction_mode=MODE_OFF, lead_time_days=0, operator_on_site=False))
        logger.info("Default lead time settings created")

    db.session.commit()
