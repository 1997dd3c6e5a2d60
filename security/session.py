"""
Server-side login sessions.

The browser holds a random token in an HttpOnly cookie; the database keeps
only its SHA-256 hash, so a leaked table cannot be replayed.
"""
import hashlib
import secrets
from datetime import timedelta
from flask import request, current_app

from models import db
from models.session import Session
from utils.timezone import utcnow


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def session_cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "wakepark_session")


def create_session(user_id: int) -> str:
    """Store a new session row and return the raw token for the cookie."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 24 * 60 * 60)

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        expires_at=utcnow() + timedelta(seconds=lifetime),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
    ))
    db.session.commit()
    return raw_token


def set_session_cookie(resp, raw_token: str):
    resp.set_cookie(
        session_cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 24 * 60 * 60),
        path="/",
    )
    return resp


def clear_session_cookie(resp):
    resp.delete_cookie(session_cookie_name(), path="/")
    return resp


def _is_live(sess: Session, now) -> bool:
    if sess.expires_at <= now:
        return False
    idle = timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 2 * 60 * 60))
    return (sess.last_seen_at or sess.created_at) + idle > now


def get_session_from_request():
    """Return the live session named by the request cookie, refreshing its idle clock."""
    raw_token = request.cookies.get(session_cookie_name())
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    now = utcnow()
    if sess is None or not _is_live(sess, now):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if sess is None:
        return False
    sess.revoked = True
    db.session.commit()
    return True


def revoke_all_sessions(user_id: int) -> int:
    count = (
        Session.query
        .filter_by(user_id=user_id, revoked=False)
        .update({"revoked": True}, synchronize_session=False)
    )
    db.session.commit()
    return count
