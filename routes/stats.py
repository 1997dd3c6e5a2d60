from flask import Blueprint, request, jsonify

from security.rbac import require_roles
from utils.errors import BookingError, error_response
from utils.stats import get_booking_stats, period_bounds

stats_bp = Blueprint("stats", __name__, url_prefix="/api")


@stats_bp.get("/stats")
@require_roles("ADMIN", "MANAGER")
def booking_stats():
    period = request.args.get("period", "week")
    try:
        start, end = period_bounds(period)
    except BookingError as exc:
        return error_response(exc)

    stats = get_booking_stats(start, end)
    return jsonify(period=period, **stats), 200
