import logging
import time

import click
from flask import Flask, request, jsonify
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from models.user import User, Role
from routes import health_bp, auth_bp, timeslots_bp, bookings_bp, config_bp, stats_bp
from security.csrf import csrf_protect
from security.password import hash_password, password_problems
from utils.audit import log_event
from utils.auth_context import load_current_user
from utils.seed import seed_roles, seed_defaults
from utils.slots import generate_initial_slots, regenerate_time_slots


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app.logger.setLevel(log_level)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(timeslots_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(stats_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Tables, roles and park defaults are created at startup (idempotent)
    with app.app_context():
        db.create_all()
        seed_roles()
        seed_defaults(app.config.get("DEFAULT_VISIBILITY_WEEKS", 4))
        if app.config.get("GENERATE_SLOTS_ON_STARTUP"):
            created = generate_initial_slots()
            if created:
                app.logger.info("Created %d initial time slots", created)

    @app.before_request
    def _start_timer():
        request.start_time = time.time()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        return csrf_protect()

    @app.after_request
    def log_slow_requests(resp):
        if hasattr(request, "start_time"):
            elapsed = (time.time() - request.start_time) * 1000
            if elapsed > app.config.get("SLOW_REQUEST_MS", 500):
                app.logger.warning(
                    "Slow request: %s %s took %.2fms - Status: %s",
                    request.method, request.path, elapsed, resp.status_code,
                )
        return resp

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        db.session.rollback()
        app.logger.error("Unhandled exception: %s", e, exc_info=True)
        return jsonify(error="Internal server error. Please try again."), 500

    register_cli(app)

    return app


def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email, password):
        """Create an ADMIN user, or promote an existing one (bootstrap)."""
        email = email.strip().lower()
        admin_role = Role.query.filter_by(name="ADMIN").first()
        if not admin_role:
            admin_role = Role(name="ADMIN")
            db.session.add(admin_role)

        user = User.query.filter_by(email=email).first()
        if user is None:
            problems = password_problems(password)
            if problems:
                raise click.BadParameter(problems[0], param_hint="--password")
            user = User(email=email, username=email.split("@")[0], password_hash=hash_password(password))
            db.session.add(user)

        if admin_role not in user.roles:
            user.roles.append(admin_role)
        db.session.commit()

        log_event("ADMIN_BOOTSTRAP", user_id=user.id, entity="user", entity_id=user.id)
        click.echo(f"{user.email} is ADMIN")

    @app.cli.command("regenerate-slots")
    def regenerate_slots():
        """Rebuild future time slots from the current configuration."""
        result = regenerate_time_slots()
        click.echo(
            f"Generated {result.generated} slots, preserved {result.preserved_bookings} booked, "
            f"prevented {result.duplicates_prevented} duplicates"
        )
        for conflict in result.conflicts:
            click.echo(f"Conflict with booked slot {conflict['id']} at {conflict['conflictTime']}")


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
