"""Notifications fired after an appointment transition commits.

Values are copied out of the ORM objects when the notification is queued, so the
background task never touches a closed session. Delivery problems are logged and
never fail the request that triggered them.
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks

from ...email_service import (
    EmailNotConfigured,
    send_agent_assignment_notification,
    send_viewing_cancelled,
    send_viewing_request_received,
    send_viewing_scheduled,
)

logger = logging.getLogger(__name__)


async def _deliver(send, description: str, **kwargs) -> None:
    try:
        await send(**kwargs)
    except EmailNotConfigured:
        logger.info(f"📧 Skipped {description}: email not configured")
    except Exception:
        logger.exception(f"❌ Failed to send {description}")


class AppointmentNotifier:
    """Queues lifecycle emails on the request's background tasks"""

    def __init__(self, background_tasks: Optional[BackgroundTasks] = None):
        self.background_tasks = background_tasks

    def _dispatch(self, send, description: str, **kwargs) -> None:
        if self.background_tasks is None:
            logger.debug(f"No background task runner, dropping {description}")
            return
        self.background_tasks.add_task(_deliver, send, description, **kwargs)

    def viewing_requested(self, appointment, prop) -> None:
        self._dispatch(
            send_viewing_request_received,
            f"request confirmation for appointment {appointment.id}",
            to=appointment.customer_email,
            customer_name=appointment.customer_name,
            property_title=prop.title,
        )

    def agent_assigned(self, appointment, agent) -> None:
        prop = appointment.property
        self._dispatch(
            send_agent_assignment_notification,
            f"assignment notice for appointment {appointment.id}",
            to=agent.email,
            agent_first_name=agent.first_name,
            property_title=prop.title if prop else f"Property #{appointment.property_id}",
            property_address=prop.address if prop else None,
            customer_name=appointment.customer_name,
            customer_phone=appointment.customer_phone,
            customer_email=appointment.customer_email,
        )

    def viewing_scheduled(self, appointment) -> None:
        prop = appointment.property
        self._dispatch(
            send_viewing_scheduled,
            f"schedule confirmation for appointment {appointment.id}",
            to=appointment.customer_email,
            customer_name=appointment.customer_name,
            property_title=prop.title if prop else f"Property #{appointment.property_id}",
            scheduled_date=appointment.scheduled_date.isoformat(),
            scheduled_time=appointment.scheduled_time.strftime("%H:%M"),
        )

    def viewing_cancelled(self, appointment) -> None:
        prop = appointment.property
        self._dispatch(
            send_viewing_cancelled,
            f"cancellation notice for appointment {appointment.id}",
            to=appointment.customer_email,
            customer_name=appointment.customer_name,
            property_title=prop.title if prop else f"Property #{appointment.property_id}",
        )
