from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import db, Booking
from models.user import User, Role
from security.csrf import issue_csrf_token, clear_csrf_token
from security.password import hash_password, verify_password, password_problems
from security.rbac import require_roles, has_role
from security.session import (
    clear_session_cookie,
    create_session,
    revoke_all_sessions,
    revoke_session,
    session_cookie_name,
    set_session_cookie,
)
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import booking_detail_json, user_json
from utils.timezone import utcnow


auth_bp = Blueprint("auth", __name__, url_prefix="/api")

DEFAULT_ROLE = "ATHLETE"


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _optional_name(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or len(value.strip()) > 80:
        raise ValueError(key)
    return value.strip() or None


def _resolve_roles(names):
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        return None
    roles = Role.query.filter(Role.name.in_(names)).all()
    if len(roles) != len(set(names)):
        return None
    return roles


def _reject(message: str, **extra):
    # drop any half-applied changes before answering
    db.session.rollback()
    return jsonify(error=message, **extra), 400


def _build_user(data: dict):
    """Validate a register/create payload. Returns (user, None) or (None, error response)."""
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    username = (data.get("username") or "").strip() or email.split("@")[0]

    if not _is_valid_email(email):
        return None, (jsonify(error="Invalid email"), 400)
    problems = password_problems(password)
    if problems:
        return None, (jsonify(error="Invalid password", details={"password": problems[0]}), 400)
    if len(username) > 80:
        return None, (jsonify(error="Invalid username"), 400)
    try:
        first_name = _optional_name(data, "firstName")
        last_name = _optional_name(data, "lastName")
    except ValueError as exc:
        return None, (jsonify(error=f"Invalid {exc}"), 400)

    if User.query.filter((User.email == email) | (User.username == username)).first():
        return None, (jsonify(error="Email or username already registered"), 409)

    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    return user, None


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    user, failure = _build_user(data)
    if failure:
        log_event("REGISTER_FAIL", metadata={"email": data.get("email")})
        return failure

    athlete = Role.query.filter_by(name=DEFAULT_ROLE).first()
    if athlete:
        user.roles.append(athlete)

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Email or username already registered"), 409

    log_event("REGISTER_SUCCESS", user_id=user.id)
    return jsonify(message="Registered successfully", user=user_json(user)), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    # Rotate: a new login revokes older sessions
    revoked_count = revoke_all_sessions(user.id)
    raw_token = create_session(user.id)

    user.last_login_at = utcnow()
    db.session.commit()

    resp = jsonify(message="Login OK", user=user_json(user))
    resp = issue_csrf_token(set_session_cookie(resp, raw_token))

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(request.cookies.get(session_cookie_name()))
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    return clear_csrf_token(clear_session_cookie(resp)), 200


@auth_bp.get("/user")
@login_required
def current_user():
    return jsonify(user_json(g.user)), 200


@auth_bp.get("/user/bookings")
@login_required
def current_user_bookings():
    bookings = (
        Booking.query
        .filter(Booking.email == g.user.email)
        .order_by(Booking.created_at.desc())
        .all()
    )
    return jsonify([booking_detail_json(b) for b in bookings]), 200


@auth_bp.get("/users")
@require_roles("ADMIN", "MANAGER")
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([user_json(u) for u in users]), 200


@auth_bp.post("/users")
@require_roles("ADMIN", "MANAGER")
def create_user():
    data = request.get_json(silent=True) or {}
    roles = _resolve_roles(data.get("roles", [DEFAULT_ROLE]))
    if roles is None:
        return jsonify(error="Invalid roles"), 400
    # Only admins hand out the admin role
    if any(r.name == "ADMIN" for r in roles) and not has_role("ADMIN"):
        return jsonify(error="Forbidden"), 403

    user, failure = _build_user(data)
    if failure:
        return failure
    user.roles = roles

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Email or username already registered"), 409

    log_event("USER_CREATE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"roles": [r.name for r in roles]})
    return jsonify(user_json(user)), 201


@auth_bp.put("/users/<int:user_id>")
@require_roles("ADMIN")
def update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify(error="User not found"), 404

    data = request.get_json(silent=True) or {}
    changes = []

    try:
        for key, attr in (("firstName", "first_name"), ("lastName", "last_name")):
            if key in data:
                setattr(user, attr, _optional_name(data, key))
                changes.append(key)
    except ValueError as exc:
        return _reject(f"Invalid {exc}")

    if "isActive" in data:
        if not isinstance(data["isActive"], bool):
            return _reject("isActive must be true or false")
        if user.id == g.user.id and not data["isActive"]:
            return _reject("You cannot deactivate yourself")
        user.is_active = data["isActive"]
        changes.append("isActive")

    if "roles" in data:
        roles = _resolve_roles(data["roles"])
        if roles is None:
            return _reject("Invalid roles")
        user.roles = roles
        changes.append("roles")

    if "password" in data:
        problems = password_problems(data["password"])
        if problems:
            return _reject("Invalid password", details={"password": problems[0]})
        user.password_hash = hash_password(data["password"])
        changes.append("password")

    db.session.commit()

    # Deactivation or a password reset ends the user's sessions
    if not user.is_active or "password" in changes:
        revoke_all_sessions(user.id)

    log_event("USER_UPDATE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"fields": changes})
    return jsonify(user_json(user)), 200
