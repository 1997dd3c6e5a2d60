import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "t", "yes")


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # "production" switches table prefix to prod_
    APP_ENV = os.getenv("APP_ENV", "development")

    # SQLite database file stored next to the app as wakepark.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "wakepark.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Park calendar
    PARK_TIMEZONE = os.getenv("PARK_TIMEZONE", "Europe/Riga")
    SLOT_MINUTES = 30
    GENERATION_HORIZON_DAYS = int(os.getenv("GENERATION_HORIZON_DAYS", "28"))
    GENERATE_SLOTS_ON_STARTUP = _env_bool("GENERATE_SLOTS_ON_STARTUP", "true")
    DEFAULT_VISIBILITY_WEEKS = 4

    # Reservations are held this long before a booking must be confirmed
    RESERVATION_TTL_MINUTES = int(os.getenv("RESERVATION_TTL_MINUTES", "10"))

    # Flat fee added to a booking total when equipment is rented
    EQUIPMENT_RENTAL_PRICE = int(os.getenv("EQUIPMENT_RENTAL_PRICE", "30"))

    # Lead-time check errors allow the booking unless this is turned off
    LEAD_TIME_FAIL_OPEN = _env_bool("LEAD_TIME_FAIL_OPEN", "true")

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "wakepark_session"

    # 24 hours session lifetime
    SESSION_LIFETIME_SECONDS = 24 * 60 * 60

    # Idle timeout: 2 hours
    IDLE_TIMEOUT_SECONDS = 2 * 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = APP_ENV == "production"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", "true")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    SLOW_REQUEST_MS = 500

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    GENERATE_SLOTS_ON_STARTUP = False
    SMTP_HOST = None
    LEAD_TIME_FAIL_OPEN = True
