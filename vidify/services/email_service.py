import asyncio
import logging

import resend

from ..config import settings
from ..exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


async def _send_email_resend(to_email: str, subject: str, text: str) -> None:
    resend.api_key = settings.resend_api_key
    try:
        await asyncio.to_thread(resend.Emails.send, {
            "from": f"{settings.emails_from_name} <{settings.emails_from_email}>",
            "to": [to_email],
            "subject": subject,
            "text": text,
        })
        logger.info(f"Email sent to {to_email}")
    except Exception as e:
        logger.error(f"Email sending failed: {str(e)}", exc_info=True)
        raise EmailDeliveryError(
            "Email service temporarily unavailable") from e


async def send_otp_email(email: str, otp_code: str) -> None:
    """Send the login/registration code to `email`."""
    if not settings.resend_api_key:
        # Development: no provider configured
        logger.warning(f"Email provider not configured; OTP for {email}: {otp_code}")
        return

    subject = f"Your {settings.app_name} Authentication OTP Code"
    text = (
        f"Your OTP code is {otp_code}\n\n"
        f"It expires in {settings.otp_expiry_minutes} minutes."
    )
    await _send_email_resend(email, subject, text)
