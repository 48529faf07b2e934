"""
Email Service using Resend
Transactional emails are written in MJML and compiled to HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    order_confirmation_template,
    password_reset_template,
    shipping_update_template,
    welcome_email_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email cannot be compiled or handed to Resend"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # Newer mjml releases return an object with .html/.errors, older ones a dict
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        if hasattr(result, "html"):
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return result.html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email via Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# Storefront transactional emails
# ============================================


async def send_welcome_email(to: str, user_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Welcome to HairCrew",
        mjml_content=welcome_email_template(user_name),
    )


async def send_password_reset_email(to: str, user_name: str, reset_link: str) -> dict:
    return await send_email(
        to=to,
        subject="Reset Your Password - HairCrew",
        mjml_content=password_reset_template(user_name, reset_link),
    )


async def send_order_confirmation_email(
    to: str, user_name: str, order_id: str, order_number: Optional[str] = None
) -> dict:
    return await send_email(
        to=to,
        subject=f"Order Confirmed - {order_number or order_id}",
        mjml_content=order_confirmation_template(user_name, order_id, order_number),
    )


async def send_shipping_update_email(to: str, user_name: str, order_id: str, status: str) -> dict:
    """Shipped/delivered notice for an order"""
    return await send_email(
        to=to,
        subject=f"Order Update: {status.title()}",
        mjml_content=shipping_update_template(user_name, order_id, status),
    )
