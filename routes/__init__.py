from routes.health import health_bp
from routes.auth import auth_bp
from routes.timeslots import timeslots_bp
from routes.bookings import bookings_bp
from routes.config import config_bp
from routes.stats import stats_bp

__all__ = ["health_bp", "auth_bp", "timeslots_bp", "bookings_bp", "config_bp", "stats_bp"]
