import os

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# dev_ / prod_ prefixes keep both environments apart in one database
_default_prefix = "prod_" if os.getenv("APP_ENV", "development") == "production" else "dev_"
TABLE_PREFIX = os.getenv("TABLE_PREFIX", _default_prefix)


def prefixed(name: str) -> str:
    return f"{TABLE_PREFIX}{name}"
