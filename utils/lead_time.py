"""
Lead-time policy: how many days ahead an online booking must be made.

Day differences are counted on park-local calendar dates, so a booking for
"tomorrow" is one day out no matter what the UTC clock says.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from flask import current_app

from models import LeadTimeSettings, TimeSlot
from models.lead_time_settings import MODE_BOOKING_BASED, MODE_OFF
from models.time_slot import SLOT_BOOKED
from utils.errors import LeadTimeError
from utils.timezone import local_day_bounds, local_today, to_local

logger = logging.getLogger(__name__)


@dataclass
class LeadTimeDecision:
    allowed: bool
    reason: Optional[str] = None
    mode: Optional[str] = None
    lead_time_days: Optional[int] = None

    def to_dict(self) -> dict:
        out = {"allowed": self.allowed}
        if self.reason is not None:
            out["reason"] = self.reason
        if self.mode is not None:
            out["mode"] = self.mode
        if self.lead_time_days is not None:
            out["leadTimeDays"] = self.lead_time_days
        return out


def candidate_local_date(candidate) -> date:
    if isinstance(candidate, datetime):
        return to_local(candidate).date()
    return candidate


def evaluate_lead_time(settings, candidate: date, today: date,
                       has_booked_slots: Callable[[date], bool] = None) -> LeadTimeDecision:
    if settings is None or settings.restriction_mode == MODE_OFF:
        return LeadTimeDecision(allowed=True)

    # Global override while staff is at the lake
    if settings.operator_on_site:
        return LeadTimeDecision(allowed=True, mode="operator_on_site")

    lead_days = settings.lead_time_days or 0
    days_ahead = (candidate - today).days
    if days_ahead >= lead_days:
        return LeadTimeDecision(allowed=True, mode=settings.restriction_mode, lead_time_days=lead_days)

    if settings.restriction_mode == MODE_BOOKING_BASED and has_booked_slots and has_booked_slots(candidate):
        return LeadTimeDecision(allowed=True, mode="booking_based_override", lead_time_days=lead_days)

    return LeadTimeDecision(
        allowed=False,
        reason=f"Online booking requires {lead_days} days lead time",
        mode=settings.restriction_mode,
        lead_time_days=lead_days,
    )


def has_booked_slots_on(day: date) -> bool:
    start, end = local_day_bounds(day)
    return (
        TimeSlot.query
        .filter(TimeSlot.start_time >= start, TimeSlot.start_time < end, TimeSlot.status == SLOT_BOOKED)
        .first()
        is not None
    )


def get_lead_time_settings():
    return LeadTimeSettings.query.order_by(LeadTimeSettings.id.asc()).first()


def check_booking_allowed(candidate, now: datetime = None) -> LeadTimeDecision:
    """Evaluate the stored lead-time settings for a candidate date or UTC instant.

    Failures inside the check allow the booking when LEAD_TIME_FAIL_OPEN is
    set (the default); otherwise they deny it.
    """
    try:
        return evaluate_lead_time(
            get_lead_time_settings(),
            candidate_local_date(candidate),
            local_today(now),
            has_booked_slots=has_booked_slots_on,
        )
    except Exception:
        logger.exception("Lead time check failed for %s", candidate)
        if current_app.config.get("LEAD_TIME_FAIL_OPEN", True):
            return LeadTimeDecision(allowed=True)
        return LeadTimeDecision(allowed=False, reason="Lead time could not be verified")


def ensure_lead_time(slots, now: datetime = None) -> None:
    """Raise LeadTimeError if any slot's local date fails the lead-time policy."""
    checked = set()
    for slot in slots:
        day = to_local(slot.start_time).date()
        if day in checked:
            continue
        checked.add(day)
        decision = check_booking_allowed(day, now=now)
        if not decision.allowed:
            raise LeadTimeError(decision.reason, decision.lead_time_days, decision.mode)
