"""Tests for registration, cookie sessions, CSRF and user administration."""

from conftest import PASSWORD, CsrfClient, booking_payload, login, make_user
from models import User
from security.csrf import CSRF_COOKIE


def _register(client, email="rider@wakepark.test", password=PASSWORD, **extra):
    return client.post("/api/register", json={"email": email, "password": password, **extra})


class TestRegister:
    def test_new_users_are_athletes(self, client):
        resp = _register(client, firstName="Rita")
        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["roles"] == ["ATHLETE"]
        assert user["username"] == "rider"
        assert user["firstName"] == "Rita"

    def test_duplicate_email(self, client):
        _register(client)
        assert _register(client).status_code == 409

    def test_short_password(self, client):
        resp = _register(client, password="short")
        assert resp.status_code == 400
        assert "password" in resp.get_json()["details"]

    def test_invalid_email(self, client):
        assert _register(client, email="not-an-email").status_code == 400


class TestSession:
    def test_login_sets_cookies(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.client.get_cookie("wakepark_session") is not None
        assert rider.client.get_cookie(CSRF_COOKIE) is not None

        body = rider.get("/api/user").get_json()
        assert body["email"] == "rider@wakepark.test"
        assert body["lastLoginAt"] is not None

    def test_wrong_password(self, client, app):
        make_user("rider@wakepark.test", "ATHLETE")
        resp = client.post("/api/login", json={"email": "rider@wakepark.test", "password": "wrong-password"})
        assert resp.status_code == 401

    def test_anonymous_user_endpoint(self, client):
        assert client.get("/api/user").status_code == 401

    def test_logout_ends_session(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.post("/api/logout").status_code == 200
        assert rider.get("/api/user").status_code == 401

    def test_logout_needs_csrf_header(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.client.post("/api/logout").status_code == 403

    def test_new_login_revokes_old_session(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        first = login(app, "rider@wakepark.test")
        login(app, "rider@wakepark.test")
        assert first.get("/api/user").status_code == 401


class TestUserBookings:
    def test_lists_only_own_bookings(self, app, staff_client, make_slot):
        mine = make_slot(hour=10)
        other = make_slot(hour=11)
        staff_client.post("/api/bookings/admin",
                          json=booking_payload([mine.id], email="Rider@WakePark.test", equipmentRental=True))
        staff_client.post("/api/bookings/admin", json=booking_payload([other.id], email="someone@else.test"))

        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        resp = rider.get("/api/user/bookings")
        assert resp.status_code == 200
        body = resp.get_json()
        assert len(body) == 1
        assert body[0]["email"] == "rider@wakepark.test"
        assert [s["id"] for s in body[0]["timeSlots"]] == [mine.id]
        assert body[0]["totalPrice"] == mine.price + app.config["EQUIPMENT_RENTAL_PRICE"]

    def test_no_bookings_is_empty_list(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.get("/api/user/bookings").get_json() == []

    def test_anonymous_is_rejected(self, client):
        assert client.get("/api/user/bookings").status_code == 401


class TestUserAdministration:
    def test_athlete_cannot_list_users(self, app):
        make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")
        assert rider.get("/api/users").status_code == 403

    def test_manager_lists_users(self, staff_client):
        body = staff_client.get("/api/users").get_json()
        assert [u["email"] for u in body] == ["manager@wakepark.test"]

    def test_manager_cannot_create_admins(self, staff_client):
        resp = staff_client.post("/api/users", json={
            "email": "boss@wakepark.test", "password": PASSWORD, "roles": ["ADMIN"],
        })
        assert resp.status_code == 403

    def test_admin_creates_manager(self, admin_client):
        resp = admin_client.post("/api/users", json={
            "email": "crew@wakepark.test", "password": PASSWORD, "roles": ["MANAGER"],
        })
        assert resp.status_code == 201
        assert resp.get_json()["roles"] == ["MANAGER"]

    def test_unknown_role(self, admin_client):
        resp = admin_client.post("/api/users", json={
            "email": "crew@wakepark.test", "password": PASSWORD, "roles": ["CAPTAIN"],
        })
        assert resp.status_code == 400

    def test_only_admin_updates_users(self, staff_client):
        user = make_user("rider@wakepark.test", "ATHLETE")
        assert staff_client.put(f"/api/users/{user.id}", json={"isActive": False}).status_code == 403

    def test_deactivated_user_is_signed_out(self, app, admin_client):
        user = make_user("rider@wakepark.test", "ATHLETE")
        rider = login(app, "rider@wakepark.test")

        resp = admin_client.put(f"/api/users/{user.id}", json={"isActive": False, "roles": ["MANAGER"]})
        assert resp.status_code == 200
        assert resp.get_json()["isActive"] is False

        assert rider.get("/api/user").status_code == 401
        resp = CsrfClient(app.test_client()).post(
            "/api/login", json={"email": "rider@wakepark.test", "password": PASSWORD},
        )
        assert resp.status_code == 401

    def test_admin_cannot_deactivate_self(self, admin_client):
        admin = User.query.filter_by(email="admin@wakepark.test").first()
        assert admin_client.put(f"/api/users/{admin.id}", json={"isActive": False}).status_code == 400
