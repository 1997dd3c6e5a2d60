"""Tests for slot regeneration: booked slots survive, nothing is duplicated."""

from collections import Counter

import pytest

from conftest import booking_payload, fresh, login, make_user
from models import db, OperatingHours, TimeSlot
from models.time_slot import SLOT_AVAILABLE, SLOT_BOOKED, SLOT_RESERVED
from utils.bookings import create_admin_booking
from utils.slots import generate_initial_slots, regenerate_time_slots
from utils.timezone import utcnow


@pytest.fixture
def short_horizon(app):
    app.config["GENERATION_HORIZON_DAYS"] = 3
    return app


def _future_slots():
    return TimeSlot.query.filter(TimeSlot.start_time > utcnow()).order_by(TimeSlot.start_time).all()


class TestInitialGeneration:
    def test_fills_empty_calendar_once(self, short_horizon):
        created = generate_initial_slots()
        assert created > 0
        assert TimeSlot.query.count() == created
        assert generate_initial_slots() == 0


class TestRegenerate:
    def test_no_duplicate_start_instants(self, short_horizon):
        regenerate_time_slots()
        regenerate_time_slots()
        counts = Counter(s.start_time for s in TimeSlot.query.all())
        assert counts and max(counts.values()) == 1

    def test_booked_slots_are_preserved(self, short_horizon):
        regenerate_time_slots()
        target = _future_slots()[0]
        booking = create_admin_booking(booking_payload([target.id]))
        slot_id, start = target.id, target.start_time

        result = regenerate_time_slots()

        assert result.preserved_bookings == 1
        assert result.duplicates_prevented == 1
        assert result.conflicts == []
        preserved = fresh(TimeSlot, slot_id)
        assert preserved is not None
        assert preserved.status == SLOT_BOOKED
        assert TimeSlot.query.filter_by(start_time=start).count() == 1
        assert [s.id for s in booking.time_slots] == [slot_id]

    def test_unbooked_slots_are_replaced(self, short_horizon):
        regenerate_time_slots()
        first, second = _future_slots()[:2]
        first.status = SLOT_RESERVED
        db.session.commit()
        old_ids = {first.id, second.id}

        regenerate_time_slots()

        db.session.expire_all()
        remaining = {s.id for s in TimeSlot.query.all()}
        assert not old_ids & remaining
        assert TimeSlot.query.filter_by(status=SLOT_RESERVED).count() == 0

    def test_closed_everywhere_generates_nothing(self, short_horizon):
        for hours in OperatingHours.query.all():
            hours.is_closed = True
        db.session.commit()

        result = regenerate_time_slots()

        assert result.generated == 0
        assert TimeSlot.query.count() == 0

    def test_failure_rolls_back(self, short_horizon, monkeypatch, make_slot):
        slot = make_slot(days_ahead=2)

        def broken(*args, **kwargs):
            raise RuntimeError("generator exploded")
        monkeypatch.setattr("utils.slots._generate", broken)

        with pytest.raises(RuntimeError):
            regenerate_time_slots()
        assert fresh(TimeSlot, slot.id).status == SLOT_AVAILABLE


class TestRegenerateEndpoint:
    def test_requires_staff(self, client):
        assert client.post("/api/timeslots/regenerate").status_code == 401

    def test_athlete_is_forbidden(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.post("/api/timeslots/regenerate").status_code == 403

    def test_reports_counts(self, short_horizon, staff_client):
        resp = staff_client.post("/api/timeslots/regenerate")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["success"] is True
        assert body["generated"] == TimeSlot.query.count()
        assert body["preservedBookings"] == 0
        assert body["duplicatesPrevented"] == 0
