from datetime import date

from flask import Blueprint, request, jsonify, current_app, g

from models import db, OperatingHours, PricingRule
from models.configuration import get_config_value, get_visibility_weeks, set_config_value
from models.lead_time_settings import LeadTimeSettings, RESTRICTION_MODES
from security.rbac import require_roles
from utils.audit import log_event
from utils.emailer import ADMIN_EMAIL_KEY
from utils.lead_time import check_booking_allowed, get_lead_time_settings
from utils.serializers import lead_time_json, operating_hours_json, pricing_json
from utils.slot_generator import OperatingHoursError, parse_time_of_day

config_bp = Blueprint("config", __name__, url_prefix="/api")

MIN_VISIBILITY_WEEKS = 1
MAX_VISIBILITY_WEEKS = 8
MAX_LEAD_TIME_DAYS = 365


def _hhmm(value) -> str:
    return parse_time_of_day(value).strftime("%H:%M")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@config_bp.get("/config")
def get_config():
    hours = OperatingHours.query.order_by(OperatingHours.day_of_week.asc()).all()
    pricing = PricingRule.query.order_by(PricingRule.id.asc()).all()
    settings = get_lead_time_settings()
    return jsonify(
        operatingHours=[operating_hours_json(h) for h in hours],
        pricing=[pricing_json(p) for p in pricing],
        visibilityWeeks=get_visibility_weeks(current_app.config.get("DEFAULT_VISIBILITY_WEEKS", 4)),
        equipmentRentalPrice=current_app.config.get("EQUIPMENT_RENTAL_PRICE", 30),
        leadTimeSettings=lead_time_json(settings) if settings else None,
    ), 200


@config_bp.put("/config/operating-hours/<int:hours_id>")
@require_roles("ADMIN", "MANAGER")
def update_operating_hours(hours_id):
    hours = db.session.get(OperatingHours, hours_id)
    if not hours:
        return jsonify(error="Operating hours not found"), 404

    data = request.get_json(silent=True) or {}
    errors = {}
    open_time, close_time = hours.open_time, hours.close_time
    try:
        if "openTime" in data:
            open_time = _hhmm(data["openTime"])
    except OperatingHoursError:
        errors["openTime"] = "Use HH:MM"
    try:
        if "closeTime" in data:
            close_time = _hhmm(data["closeTime"])
    except OperatingHoursError:
        errors["closeTime"] = "Use HH:MM"

    is_closed = data.get("isClosed", hours.is_closed)
    if not isinstance(is_closed, bool):
        errors["isClosed"] = "Must be true or false"

    if not errors and not is_closed and parse_time_of_day(close_time) <= parse_time_of_day(open_time):
        errors["closeTime"] = "Closing time must be after opening time"

    if errors:
        return jsonify(error="Invalid operating hours", details=errors), 400

    hours.open_time = open_time
    hours.close_time = close_time
    hours.is_closed = is_closed
    db.session.commit()

    log_event("OPERATING_HOURS_UPDATE", user_id=g.user.id, entity="operating_hours", entity_id=hours.id,
              metadata=operating_hours_json(hours))
    return jsonify(operating_hours_json(hours)), 200


@config_bp.put("/config/pricing/<int:pricing_id>")
@require_roles("ADMIN", "MANAGER")
def update_pricing(pricing_id):
    rule = db.session.get(PricingRule, pricing_id)
    if not rule:
        return jsonify(error="Pricing rule not found"), 404

    data = request.get_json(silent=True) or {}
    errors = {}

    if "price" in data:
        if not _is_number(data["price"]) or data["price"] < 0:
            errors["price"] = "Price must be a non-negative number"
    for key in ("startTime", "endTime"):
        if data.get(key) is not None:
            try:
                _hhmm(data[key])
            except OperatingHoursError:
                errors[key] = "Use HH:MM"
    if "applyToWeekends" in data and not isinstance(data["applyToWeekends"], bool):
        errors["applyToWeekends"] = "Must be true or false"
    if data.get("weekendMultiplier") is not None:
        if not _is_number(data["weekendMultiplier"]) or data["weekendMultiplier"] <= 0:
            errors["weekendMultiplier"] = "Must be a positive number"

    if errors:
        return jsonify(error="Invalid pricing", details=errors), 400

    if "price" in data:
        rule.price = float(data["price"])
    if "startTime" in data:
        rule.start_time = _hhmm(data["startTime"]) if data["startTime"] is not None else None
    if "endTime" in data:
        rule.end_time = _hhmm(data["endTime"]) if data["endTime"] is not None else None
    if "applyToWeekends" in data:
        rule.apply_to_weekends = data["applyToWeekends"]
    if "weekendMultiplier" in data:
        rule.weekend_multiplier = data["weekendMultiplier"]
    db.session.commit()

    log_event("PRICING_UPDATE", user_id=g.user.id, entity="pricing", entity_id=rule.id,
              metadata=pricing_json(rule))
    return jsonify(pricing_json(rule)), 200


@config_bp.put("/config/visibility")
@require_roles("ADMIN", "MANAGER")
def update_visibility():
    data = request.get_json(silent=True) or {}
    weeks = data.get("weeks")
    if not isinstance(weeks, int) or isinstance(weeks, bool) or not MIN_VISIBILITY_WEEKS <= weeks <= MAX_VISIBILITY_WEEKS:
        return jsonify(
            error="Invalid visibility",
            details={"weeks": f"Must be between {MIN_VISIBILITY_WEEKS} and {MAX_VISIBILITY_WEEKS}"},
        ), 400

    set_config_value("visibility_weeks", str(weeks))
    db.session.commit()

    log_event("VISIBILITY_UPDATE", user_id=g.user.id, entity="configuration", metadata={"weeks": weeks})
    return jsonify(visibilityWeeks=weeks), 200


@config_bp.get("/config/admin-email")
@require_roles("ADMIN")
def get_admin_email():
    return jsonify(email=get_config_value(ADMIN_EMAIL_KEY)), 200


@config_bp.put("/config/admin-email")
@require_roles("ADMIN")
def update_admin_email():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    if "@" not in email or len(email) > 255:
        return jsonify(error="Invalid email"), 400

    set_config_value(ADMIN_EMAIL_KEY, email)
    db.session.commit()

    log_event("ADMIN_EMAIL_UPDATE", user_id=g.user.id, entity="configuration", metadata={"email": email})
    return jsonify(email=email), 200


@config_bp.get("/admin/lead-time-settings")
def get_lead_time():
    settings = get_lead_time_settings()
    if not settings:
        return jsonify(error="Lead time settings not found"), 404
    return jsonify(lead_time_json(settings)), 200


@config_bp.post("/admin/lead-time-settings")
@require_roles("ADMIN", "MANAGER")
def update_lead_time():
    data = request.get_json(silent=True) or {}
    errors = {}

    mode = data.get("restrictionMode")
    if mode is not None and mode not in RESTRICTION_MODES:
        errors["restrictionMode"] = f"Must be one of: {', '.join(RESTRICTION_MODES)}"
    days = data.get("leadTimeDays")
    if days is not None and (not isinstance(days, int) or isinstance(days, bool) or not 0 <= days <= MAX_LEAD_TIME_DAYS):
        errors["leadTimeDays"] = f"Must be a whole number between 0 and {MAX_LEAD_TIME_DAYS}"
    on_site = data.get("operatorOnSite")
    if on_site is not None and not isinstance(on_site, bool):
        errors["operatorOnSite"] = "Must be true or false"

    if errors:
        return jsonify(error="Invalid lead time settings", details=errors), 400

    settings = get_lead_time_settings()
    if settings is None:
        settings = LeadTimeSettings()
        db.session.add(settings)
    if mode is not None:
        settings.restriction_mode = mode
    if days is not None:
        settings.lead_time_days = days
    if on_site is not None:
        settings.operator_on_site = on_site
    db.session.commit()

    log_event("LEAD_TIME_UPDATE", user_id=g.user.id, entity="lead_time_settings", entity_id=settings.id,
              metadata={"restrictionMode": settings.restriction_mode, "leadTimeDays": settings.lead_time_days,
                        "operatorOnSite": settings.operator_on_site})
    return jsonify(lead_time_json(settings)), 200


@config_bp.get("/lead-time/check")
def check_lead_time():
    raw = request.args.get("date")
    if not raw:
        return jsonify(error="date is required"), 400
    try:
        candidate = date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return jsonify(error="Invalid date format. Use YYYY-MM-DD"), 400

    decision = check_booking_allowed(candidate)
    return jsonify(date=candidate.isoformat(), **decision.to_dict()), 200
