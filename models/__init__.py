from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .time_slot import TimeSlot
from .booking import Booking, BookingTimeSlot
from .operating_hours import OperatingHours
from .pricing import PricingRule
from .configuration import Configuration
from .lead_time_settings import LeadTimeSettings
