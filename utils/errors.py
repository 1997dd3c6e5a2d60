from flask import jsonify


class BookingError(Exception):
    """Base class for domain errors translated into JSON responses by the routes."""

    status_code = 400

    def __init__(self, message: str, **payload):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self) -> dict:
        return {"error": self.message, **self.payload}


class ValidationError(BookingError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details or {})


class SlotUnavailableError(BookingError):
    def __init__(self, message: str, slot_ids):
        super().__init__(message, timeSlotIds=sorted(slot_ids))


class SlotsAlreadyBookedError(BookingError):
    status_code = 409

    def __init__(self, slot_ids):
        super().__init__("One or more selected time slots are already booked",
                         alreadyBookedSlots=sorted(slot_ids))


class LeadTimeError(BookingError):
    status_code = 403

    def __init__(self, reason: str, lead_time_days=None, mode=None):
        super().__init__(reason, reason=reason, leadTimeDays=lead_time_days, mode=mode)


class NotFoundError(BookingError):
    status_code = 404


def error_response(exc: BookingError):
    return jsonify(exc.to_dict()), exc.status_code
