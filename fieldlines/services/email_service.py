"""
Email service using SendGrid for account and booking notifications.

Every send function returns True on success (or when email is disabled) and
False on failure. Email problems are logged and never raised, so a failed
notification does not break the request that triggered it.
"""

import os
import logging
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content
from dotenv import load_dotenv

from fieldlines.services import settings_service
from fieldlines.utils.constants import PREFERRED_TIME_LABELS
from fieldlines.utils.datetime_utils import format_display_date

load_dotenv()

logger = logging.getLogger(__name__)

# SendGrid configuration
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@fieldlines.app")
PROVIDER_NOTIFICATION_EMAIL = os.getenv("PROVIDER_NOTIFICATION_EMAIL", "bookings@fieldlines.app")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ENABLE_EMAIL = settings_service.get_bool_env("ENABLE_EMAIL", default=True)

SIGNATURE = ["", "---", "This is an automated message from FieldLines."]


async def is_enabled(session: Optional[AsyncSession] = None) -> bool:
    """Whether email is enabled, checking the enable_email setting first."""
    try:
        return await settings_service.get_bool_setting(
            session, "enable_email", env_var="ENABLE_EMAIL", default=True
        )
    except Exception as e:
        logger.warning(f"Error getting ENABLE_EMAIL from settings, using default: {e}")
        return ENABLE_EMAIL


async def send_email(
    to_email: str,
    subject: str,
    body_lines: List[str],
    session: Optional[AsyncSession] = None,
) -> bool:
    """
    Send a plain-text email via SendGrid.

    Args:
        to_email: Recipient address
        subject: Subject line
        body_lines: Body, one entry per line (signature is appended)
        session: Optional database session for checking the enable_email setting

    Returns:
        bool: True if sent (or skipped because email is disabled), False on failure
    """
    if not await is_enabled(session):
        logger.info(f"Email sending is disabled. Skipped '{subject}' to {to_email}.")
        return True

    if not SENDGRID_API_KEY:
        logger.warning(f"SENDGRID_API_KEY not configured. Skipped '{subject}' to {to_email}.")
        return True

    try:
        message = Mail(
            from_email=Email(SENDGRID_FROM_EMAIL),
            to_emails=To(to_email),
            subject=subject,
            plain_text_content=Content("text/plain", "\n".join(body_lines + SIGNATURE)),
        )
        response = SendGridAPIClient(SENDGRID_API_KEY).send(message)

        if 200 <= response.status_code < 300:
            logger.info(f"Email '{subject}' sent to {to_email}")
            return True
        logger.error(f"SendGrid returned status {response.status_code}: {response.body}")
        return False
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to_email}: {str(e)}")
        return False


def _booking_lines(booking: Dict) -> List[str]:
    configuration = booking.get("configuration") or {}
    sportsground = configuration.get("sportsground") or {}
    lines = [
        f"Reference: {booking['reference_number']}",
        f"Field: {configuration.get('name', '')}",
    ]
    if sportsground:
        lines.append(f"Sportsground: {sportsground.get('name', '')} ({sportsground.get('address', '')})")
    lines.append(f"Preferred date: {format_display_date(booking['preferred_date'])}")
    lines.append(
        f"Preferred time: {PREFERRED_TIME_LABELS.get(booking['preferred_time'], booking['preferred_time'])}"
    )
    if booking.get("alternative_date"):
        lines.append(f"Alternative date: {format_display_date(booking['alternative_date'])}")
    return lines


# ----------------------------------------------------------------------------
# Account emails
# ----------------------------------------------------------------------------


async def send_verification_email(
    to_email: str, full_name: str, token: str, session: Optional[AsyncSession] = None
) -> bool:
    link = f"{FRONTEND_URL}/verify-email?token={token}"
    return await send_email(
        to_email,
        "Verify your FieldLines account",
        [
            f"Hi {full_name},",
            "",
            "Please confirm your email address by opening the link below:",
            link,
        ],
        session,
    )


async def send_password_reset_email(
    to_email: str, full_name: str, token: str, session: Optional[AsyncSession] = None
) -> bool:
    link = f"{FRONTEND_URL}/reset-password?token={token}"
    return await send_email(
        to_email,
        "Reset your FieldLines password",
        [
            f"Hi {full_name},",
            "",
            "A password reset was requested for your account. The link below is valid for 24 hours:",
            link,
            "",
            "If you did not request this, you can ignore this email.",
        ],
        session,
    )


async def send_admin_invitation_email(
    to_email: str, token: str, session: Optional[AsyncSession] = None
) -> bool:
    link = f"{FRONTEND_URL}/admin/register?token={token}"
    return await send_email(
        to_email,
        "You have been invited to administer FieldLines",
        ["You have been invited to join FieldLines as an administrator.", "", link],
        session,
    )


async def send_user_invitation_email(
    to_email: str, token: str, session: Optional[AsyncSession] = None
) -> bool:
    link = f"{FRONTEND_URL}/register-invited?token={token}"
    return await send_email(
        to_email,
        "You have been invited to FieldLines",
        ["You have been invited to create a FieldLines account.", "", link],
        session,
    )


# ----------------------------------------------------------------------------
# Booking emails
# ----------------------------------------------------------------------------


async def send_booking_confirmation_email(
    user: Dict, booking: Dict, session: Optional[AsyncSession] = None
) -> bool:
    return await send_email(
        user["email"],
        f"Booking received - {booking['reference_number']}",
        [f"Hi {user['full_name']},", "", "We have received your line-marking booking:", ""]
        + _booking_lines(booking)
        + ["", "We will be in touch to confirm the visit."],
        session,
    )


async def send_provider_notification_email(
    user: Dict, booking: Dict, session: Optional[AsyncSession] = None
) -> bool:
    """Notify the line-marking provider with the customer and field coordinates."""
    configuration = booking.get("configuration") or {}
    lines = ["A new booking has been submitted:", ""] + _booking_lines(booking)
    lines += [
        "",
        f"Field center: {configuration.get('latitude')}, {configuration.get('longitude')}",
        f"Rotation: {configuration.get('rotation_degrees')} degrees",
        f"Dimensions: {configuration.get('length_meters')}m x {configuration.get('width_meters')}m",
        f"Line color: {configuration.get('line_color')}",
        "",
        f"Customer: {user['full_name']} <{user['email']}>",
        f"Phone: {user.get('phone') or 'Not provided'}",
        f"Contact preference: {booking['contact_preference']}",
    ]
    if booking.get("notes"):
        lines += ["", "Notes:", booking["notes"]]
    return await send_email(
        PROVIDER_NOTIFICATION_EMAIL, f"New booking {booking['reference_number']}", lines, session
    )


async def send_batch_confirmation_email(
    user: Dict, group: Dict, session: Optional[AsyncSession] = None
) -> bool:
    lines = [
        f"Hi {user['full_name']},",
        "",
        f"We have received your booking for {len(group['bookings'])} fields "
        f"(group reference {group['reference_number']}):",
        "",
    ]
    for booking in group["bookings"]:
        lines += _booking_lines(booking) + [""]
    return await send_email(
        user["email"], f"Batch booking received - {group['reference_number']}", lines, session
    )


async def send_booking_status_email(
    user: Dict, booking: Dict, old_status: str, session: Optional[AsyncSession] = None
) -> bool:
    return await send_email(
        user["email"],
        f"Booking {booking['reference_number']} is now {booking['status']}",
        [
            f"Hi {user['full_name']},",
            "",
            f"The status of your booking changed from {old_status} to {booking['status']}.",
            "",
        ]
        + _booking_lines(booking),
        session,
    )
