"""Shared test fixtures and helpers."""

from datetime import datetime, time, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db, PricingRule, TimeSlot
from models.time_slot import SLOT_AVAILABLE
from models.user import User, Role
from security.csrf import CSRF_COOKIE, CSRF_HEADER
from security.password import hash_password
from utils.slot_generator import resolve_price
from utils.timezone import from_local, js_weekday, local_today, to_naive_utc

PASSWORD = "correct-horse-9"


class CsrfClient:
    """Test client that echoes the CSRF cookie back in the request header."""

    def __init__(self, client):
        self.client = client

    def _headers(self, headers):
        headers = dict(headers or {})
        cookie = self.client.get_cookie(CSRF_COOKIE)
        if cookie is not None:
            headers[CSRF_HEADER] = cookie.value
        return headers

    def get(self, *args, **kwargs):
        return self.client.get(*args, **kwargs)

    def post(self, *args, headers=None, **kwargs):
        return self.client.post(*args, headers=self._headers(headers), **kwargs)

    def put(self, *args, headers=None, **kwargs):
        return self.client.put(*args, headers=self._headers(headers), **kwargs)

    def delete(self, *args, headers=None, **kwargs):
        return self.client.delete(*args, headers=self._headers(headers), **kwargs)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email: str, role: str) -> User:
    user = User(email=email, username=email.split("@")[0], password_hash=hash_password(PASSWORD))
    user.roles.append(Role.query.filter_by(name=role).first())
    db.session.add(user)
    db.session.commit()
    return user


def login(app, email: str) -> CsrfClient:
    client = app.test_client()
    resp = client.post("/api/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return CsrfClient(client)


@pytest.fixture
def staff_client(app):
    make_user("manager@wakepark.test", "MANAGER")
    return login(app, "manager@wakepark.test")


@pytest.fixture
def admin_client(app):
    make_user("admin@wakepark.test", "ADMIN")
    return login(app, "admin@wakepark.test")


def local_instant(days_ahead: int, hour: int, minute: int = 0) -> datetime:
    """Naive UTC instant of a park-local wall time ``days_ahead`` days from today."""
    day = local_today() + timedelta(days=days_ahead)
    return to_naive_utc(from_local(datetime.combine(day, time(hour, minute))))


@pytest.fixture
def make_slot(app):
    def _make(days_ahead: int = 3, hour: int = 10, minute: int = 0, status: str = SLOT_AVAILABLE,
              reservation_expiry=None) -> TimeSlot:
        start = local_instant(days_ahead, hour, minute)
        day = local_today() + timedelta(days=days_ahead)
        slot = TimeSlot(
            start_time=start,
            end_time=start + timedelta(minutes=30),
            price=resolve_price(PricingRule.query.all(), js_weekday(day), hour),
            status=status,
            reservation_expiry=reservation_expiry,
        )
        db.session.add(slot)
        db.session.commit()
        return slot
    return _make


def fresh(model, pk):
    """Reload a row, bypassing whatever the session has cached."""
    db.session.expire_all()
    return db.session.get(model, pk)


def booking_payload(slot_ids, **overrides) -> dict:
    payload = {
        "fullName": "Anna Berzina",
        "phoneNumber": "37120000000",
        "experienceLevel": "beginner",
        "equipmentRental": False,
        "timeSlotIds": slot_ids,
    }
    payload.update(overrides)
    return payload
