from functools import wraps
from flask import g, jsonify

ADMIN_ROLE = "ADMIN"
STAFF_ROLES = (ADMIN_ROLE, "MANAGER")


def role_names() -> set:
    user = getattr(g, "user", None)
    return {r.name for r in user.roles} if user else set()


def has_role(role_name: str) -> bool:
    return role_name in role_names()


def is_staff() -> bool:
    return bool(role_names() & set(STAFF_ROLES))


def require_roles(*allowed: str):
    """
    Usage: @require_roles("ADMIN", "MANAGER")
    ADMIN passes every role check.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if getattr(g, "user", None) is None:
                return jsonify(error="Authentication required"), 401

            names = role_names()
            if ADMIN_ROLE not in names and not names & set(allowed):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
