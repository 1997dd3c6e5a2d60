from functools import wraps
from flask import g, jsonify
from models import db
from models.user import User
from security.session import get_session_from_request


def load_current_user():
    """before_request hook: resolve the session cookie to an active user on ``g``."""
    g.user = None
    g.session = None

    sess = get_session_from_request()
    if sess is None:
        return
    user = db.session.get(User, sess.user_id)
    # Deactivated accounts keep their rows but lose access immediately
    if user is None or not user.is_active:
        return
    g.session = sess
    g.user = user


def current_user_id():
    user = getattr(g, "user", None)
    return user.id if user else None


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
