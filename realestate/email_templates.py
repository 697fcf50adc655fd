"""
MJML Email Templates
Viewing request notifications for customers and agents
"""

from html import escape
from typing import Optional

from .config import AGENCY_NAME, AGENCY_PHONE

THEME = {
    "primary": "#1d4ed8",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def get_base_template(title: str, preview_text: str, content_sections: str) -> str:
    """Base MJML template wrapper for all emails"""
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}

            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0" />
            <mj-text font-size="14px" color="{THEME['text_muted']}" padding="0">
              Best regards,<br />{escape(AGENCY_NAME)} Team
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_list(rows: list[tuple[str, Optional[str]]]) -> str:
    items = "".join(
        f"<li><strong>{escape(label)}:</strong> {escape(str(value))}</li>"
        for label, value in rows
        if value
    )
    return f"<mj-text><ul>{items}</ul></mj-text>"


def viewing_request_received_template(customer_name: str, property_title: str) -> str:
    content = f"""
    <mj-text>Dear {escape(customer_name)},</mj-text>
    <mj-text>We have received your request to view <strong>{escape(property_title)}</strong>.</mj-text>
    <mj-text>One of our agents will contact you within 24 hours to schedule a viewing.</mj-text>
    <mj-text>If you have any urgent questions, please call us at {escape(AGENCY_PHONE)}.</mj-text>
    """
    return get_base_template(
        title="Thank you for your viewing request!",
        preview_text=f"We received your request to view {property_title}",
        content_sections=content,
    )


def agent_assignment_template(
    agent_first_name: str,
    property_title: str,
    property_address: Optional[str],
    customer_name: str,
    customer_phone: str,
    customer_email: str,
) -> str:
    details = _detail_list(
        [
            ("Property", property_title),
            ("Address", property_address),
            ("Customer", customer_name),
            ("Phone", customer_phone),
            ("Email", customer_email),
        ]
    )
    content = f"""
    <mj-text>Dear {escape(agent_first_name)},</mj-text>
    <mj-text>You have been assigned a new viewing request:</mj-text>
    {details}
    <mj-text>Please contact the customer within 24 hours to schedule a viewing.</mj-text>
    """
    return get_base_template(
        title="New Viewing Request Assigned",
        preview_text=f"New viewing request for {property_title}",
        content_sections=content,
    )


def viewing_scheduled_template(
    customer_name: str, property_title: str, scheduled_date: str, scheduled_time: str
) -> str:
    details = _detail_list([("Date", scheduled_date), ("Time", scheduled_time)])
    content = f"""
    <mj-text>Dear {escape(customer_name)},</mj-text>
    <mj-text>Your viewing for <strong>{escape(property_title)}</strong> has been scheduled:</mj-text>
    {details}
    <mj-text>Please arrive 5 minutes early. If you need to reschedule, please contact us.</mj-text>
    """
    return get_base_template(
        title="Your Viewing is Scheduled!",
        preview_text=f"Viewing scheduled for {scheduled_date} at {scheduled_time}",
        content_sections=content,
    )


def viewing_cancelled_template(customer_name: str, property_title: str) -> str:
    content = f"""
    <mj-text>Dear {escape(customer_name)},</mj-text>
    <mj-text>Your viewing request for <strong>{escape(property_title)}</strong> has been cancelled.</mj-text>
    <mj-text>If you are still interested in this property, you are welcome to submit a new request
    or call us at {escape(AGENCY_PHONE)}.</mj-text>
    """
    return get_base_template(
        title="Viewing Cancelled",
        preview_text=f"Your viewing for {property_title} was cancelled",
        content_sections=content,
    )
