"""
Email Service using Resend
Compiles MJML templates to HTML and delivers viewing notifications
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import AGENCY_NAME, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    agent_assignment_template,
    viewing_cancelled_template,
    viewing_request_received_template,
    viewing_scheduled_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfigured(Exception):
    """Raised when no delivery provider is configured"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a result with 'html' and 'errors'
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
        raise RuntimeError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.info("📧 Email not configured (RESEND_API_KEY missing), skipping notification")
        raise EmailNotConfigured("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    logger.info(f"📧 Sending email via Resend to: {recipients}")
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


# ============================================
# Viewing lifecycle notifications
# ============================================


async def send_viewing_request_received(to: str, customer_name: str, property_title: str) -> dict:
    """Confirm a new viewing request to the customer"""
    mjml_content = viewing_request_received_template(customer_name, property_title)
    return await send_email(
        to=to,
        subject=f"Viewing Request Received - {AGENCY_NAME}",
        mjml_content=mjml_content,
    )


async def send_agent_assignment_notification(
    to: str,
    agent_first_name: str,
    property_title: str,
    property_address: Optional[str],
    customer_name: str,
    customer_phone: str,
    customer_email: str,
) -> dict:
    """Tell an agent they have a new viewing request to handle"""
    mjml_content = agent_assignment_template(
        agent_first_name=agent_first_name,
        property_title=property_title,
        property_address=property_address,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_email=customer_email,
    )
    return await send_email(
        to=to,
        subject=f"New Viewing Request Assigned - {AGENCY_NAME}",
        mjml_content=mjml_content,
    )


async def send_viewing_scheduled(
    to: str, customer_name: str, property_title: str, scheduled_date: str, scheduled_time: str
) -> dict:
    """Tell the customer when their viewing is"""
    mjml_content = viewing_scheduled_template(
        customer_name=customer_name,
        property_title=property_title,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
    )
    return await send_email(
        to=to,
        subject=f"Viewing Scheduled - {AGENCY_NAME}",
        mjml_content=mjml_content,
    )


async def send_viewing_cancelled(to: str, customer_name: str, property_title: str) -> dict:
    mjml_content = viewing_cancelled_template(customer_name, property_title)
    return await send_email(
        to=to,
        subject=f"Viewing Cancelled - {AGENCY_NAME}",
        mjml_content=mjml_content,
    )
