import hmac
import secrets
from flask import g, request, jsonify, current_app

CSRF_COOKIE = "wakepark_csrf"
CSRF_HEADER = "X-CSRF-Token"

STATE_CHANGING_METHODS = ("POST", "PUT", "PATCH", "DELETE")

# Auth bootstrap endpoints run before a session exists
CSRF_EXEMPT_PATHS = {
    "/api/login",
    "/api/register",
    "/health",
}

def issue_csrf_token(resp):
    resp.set_cookie(
        CSRF_COOKIE,
        secrets.token_urlsafe(32),
        httponly=False,  # must be readable by client JS
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp

def clear_csrf_token(resp):
    resp.delete_cookie(CSRF_COOKIE, path="/")
    return resp

def require_csrf():
    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token or not hmac.compare_digest(cookie_token, header_token):
        return jsonify(error="CSRF validation failed"), 403
    return None

def csrf_protect():
    """before_request hook: double-submit check for signed-in state changes."""
    if request.method not in STATE_CHANGING_METHODS:
        return None
    if request.path in CSRF_EXEMPT_PATHS:
        return None
    if getattr(g, "user", None) is None:
        return None
    return require_csrf()
