"""Tests for park configuration and the public calendar endpoint."""

from datetime import timedelta

from conftest import fresh
from models import db, OperatingHours, PricingRule
from utils.timezone import local_today


class TestReadConfig:
    def test_defaults_are_seeded(self, client):
        body = client.get("/api/config").get_json()
        assert len(body["operatingHours"]) == 7
        assert [h["dayOfWeek"] for h in body["operatingHours"]] == list(range(7))
        assert body["operatingHours"][1]["isClosed"] is True
        assert {p["name"] for p in body["pricing"]} == {"standard", "peak"}
        assert body["visibilityWeeks"] == 4
        assert body["equipmentRentalPrice"] == 30
        assert body["leadTimeSettings"]["restrictionMode"] == "off"


class TestTimeslotsEndpoint:
    def test_no_operating_hours_means_no_slots(self, client, staff_client):
        OperatingHours.query.delete()
        db.session.commit()
        assert staff_client.post("/api/timeslots/regenerate").status_code == 200

        resp = client.get("/api/timeslots")
        assert resp.status_code == 200
        assert resp.get_json()["timeSlots"] == []

    def test_lists_slots_in_local_day_range(self, client, make_slot):
        inside = make_slot(days_ahead=2, hour=8)
        make_slot(days_ahead=5, hour=8)
        day = (local_today() + timedelta(days=2)).isoformat()

        body = client.get(f"/api/timeslots?startDate={day}&endDate={day}").get_json()
        assert [s["id"] for s in body["timeSlots"]] == [inside.id]
        assert body["timeSlots"][0]["localStartTime"].endswith("T08:00")

    def test_rejects_bad_dates(self, client):
        assert client.get("/api/timeslots?startDate=soon").status_code == 400
        today = local_today()
        resp = client.get(f"/api/timeslots?startDate={today + timedelta(days=3)}&endDate={today}")
        assert resp.status_code == 400

    def test_public_range_is_clamped_to_visibility(self, client, staff_client, make_slot):
        assert staff_client.put("/api/config/visibility", json={"weeks": 1}).status_code == 200
        near = make_slot(days_ahead=3)
        far = make_slot(days_ahead=10)
        today = local_today()
        query = f"/api/timeslots?startDate={today}&endDate={today + timedelta(days=20)}"

        public = client.get(query).get_json()
        assert public["endDate"] == (today + timedelta(weeks=1)).isoformat()
        assert [s["id"] for s in public["timeSlots"]] == [near.id]

        staff = staff_client.get(query).get_json()
        assert {s["id"] for s in staff["timeSlots"]} == {near.id, far.id}


class TestOperatingHours:
    def _monday(self):
        return OperatingHours.query.filter_by(day_of_week=1).first()

    def test_update(self, staff_client):
        hours = self._monday()
        resp = staff_client.put(f"/api/config/operating-hours/{hours.id}",
                                json={"openTime": "9:00", "closeTime": "18:30:00", "isClosed": False})
        assert resp.status_code == 200
        stored = fresh(OperatingHours, hours.id)
        assert (stored.open_time, stored.close_time, stored.is_closed) == ("09:00", "18:30", False)

    def test_rejects_malformed_times(self, staff_client):
        hours = self._monday()
        resp = staff_client.put(f"/api/config/operating-hours/{hours.id}", json={"openTime": "25:00"})
        assert resp.status_code == 400
        assert "openTime" in resp.get_json()["details"]

    def test_rejects_close_before_open(self, staff_client):
        hours = self._monday()
        resp = staff_client.put(f"/api/config/operating-hours/{hours.id}",
                                json={"openTime": "18:00", "closeTime": "10:00", "isClosed": False})
        assert resp.status_code == 400

    def test_unknown_day(self, staff_client):
        assert staff_client.put("/api/config/operating-hours/999", json={}).status_code == 404

    def test_requires_staff(self, client):
        assert client.put("/api/config/operating-hours/1", json={"isClosed": True}).status_code == 401


class TestPricing:
    def test_update_price(self, staff_client):
        rule = PricingRule.query.filter_by(name="standard").first()
        resp = staff_client.put(f"/api/config/pricing/{rule.id}", json={"price": 42.5})
        assert resp.status_code == 200
        assert fresh(PricingRule, rule.id).price == 42.5

    def test_rejects_negative_price(self, staff_client):
        rule = PricingRule.query.filter_by(name="standard").first()
        assert staff_client.put(f"/api/config/pricing/{rule.id}", json={"price": -1}).status_code == 400


class TestVisibility:
    def test_bounds(self, staff_client):
        for weeks in (0, 9, "4", True):
            assert staff_client.put("/api/config/visibility", json={"weeks": weeks}).status_code == 400
        resp = staff_client.put("/api/config/visibility", json={"weeks": 8})
        assert resp.get_json() == {"visibilityWeeks": 8}


class TestAdminEmail:
    def test_manager_is_forbidden(self, staff_client):
        assert staff_client.get("/api/config/admin-email").status_code == 403

    def test_admin_can_set(self, admin_client):
        resp = admin_client.put("/api/config/admin-email", json={"email": "Ops@WakePark.lv"})
        assert resp.status_code == 200
        assert admin_client.get("/api/config/admin-email").get_json() == {"email": "ops@wakepark.lv"}

    def test_rejects_invalid(self, admin_client):
        assert admin_client.put("/api/config/admin-email", json={"email": "nope"}).status_code == 400
