"""Tests for the application shell: health, error pages, headers and CLI."""

from conftest import login, make_user
from models import TimeSlot
from models.user import User


class TestShell:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert "error" in resp.get_json()

    def test_wrong_method_is_json(self, client):
        resp = client.delete("/api/config")
        assert resp.status_code == 405
        assert "error" in resp.get_json()

    def test_security_headers(self, client):
        resp = client.get("/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"

    def test_unexpected_error_is_generic_500(self, app, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")
        monkeypatch.setattr("routes.stats.period_bounds", broken)

        make_user("boss@wakepark.test", "ADMIN")
        admin = login(app, "boss@wakepark.test")
        resp = admin.get("/api/stats")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error. Please try again."}


class TestCli:
    def test_create_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-admin", "Owner@WakePark.test", "--password", "long-enough-1"])
        assert result.exit_code == 0, result.output
        user = User.query.filter_by(email="owner@wakepark.test").first()
        assert {r.name for r in user.roles} == {"ADMIN"}

    def test_create_admin_rejects_weak_password(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-admin", "owner@wakepark.test", "--password", "short"])
        assert result.exit_code != 0
        assert User.query.count() == 0

    def test_regenerate_slots(self, app):
        app.config["GENERATION_HORIZON_DAYS"] = 2
        result = app.test_cli_runner().invoke(args=["regenerate-slots"])
        assert result.exit_code == 0, result.output
        assert f"Generated {TimeSlot.query.count()} slots" in result.output
