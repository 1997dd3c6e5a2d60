from models.db import db, prefixed


class Configuration(db.Model):
    __tablename__ = prefixed("configuration")

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=False)


def get_config_value(name: str, default=None):
    row = Configuration.query.filter_by(name=name).first()
    return row.value if row else default


def set_config_value(name: str, value: str) -> Configuration:
    """Upsert a configuration entry. Caller commits."""
    row = Configuration.query.filter_by(name=name).first()
    if row is None:
        row = Configuration(name=name, value=value)
        db.session.add(row)
    else:
        row.value = value
    return row


def get_visibility_weeks(default: int = 4) -> int:
    value = get_config_value("visibility_weeks")
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default
