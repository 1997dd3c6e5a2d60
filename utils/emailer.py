import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

from models.configuration import get_config_value
from utils.timezone import format_local

logger = logging.getLogger(__name__)

ADMIN_EMAIL_KEY = "admin_email"


def send_email(to_email: str, subject: str, body: str):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, "Email not configured"
    if not to_email:
        return False, "No recipient"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Sending '%s' to %s failed: %s", subject, to_email, exc)
        return False, str(exc)


def _slot_lines(slots) -> str:
    return "\n".join(
        f"  {format_local(s.start_time, '%d.%m.%Y %H:%M')} - {format_local(s.end_time, '%H:%M')}"
        for s in slots
    )


def notify_booking_created(booking, slots, total: int):
    """Tell the park operator about a new booking. Best effort."""
    admin_email = get_config_value(ADMIN_EMAIL_KEY)
    subject = f"New booking {booking.reference}"
    body = (
        f"Reference: {booking.reference}\n"
        f"Name: {booking.customer_name}\n"
        f"Phone: {booking.phone_number}\n"
        f"Experience: {booking.experience_level}\n"
        f"Equipment rental: {'Yes' if booking.equipment_rental else 'No'}\n"
        f"Total: {total}\n\n"
        f"Sessions:\n{_slot_lines(slots)}\n"
    )
    return send_email(admin_email, subject, body)


def notify_booking_cancelled(reference: str, customer_name: str):
    admin_email = get_config_value(ADMIN_EMAIL_KEY)
    subject = f"Booking {reference} cancelled"
    body = f"Booking {reference} for {customer_name} was cancelled and its slots released.\n"
    return send_email(admin_email, subject, body)
