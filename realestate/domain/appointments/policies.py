"""Authorization guard for appointment operations.

Role checks happen once per operation through ``authorize``; ownership checks
(agent must be the assigned agent) go through ``ensure_owner``. Business logic
never branches on roles directly.
"""

import logging

from ...auth import ROLE_ADMIN, ROLE_AGENT, ROLE_CUSTOMER, Actor
from .errors import Forbidden, NotOwned, Unauthenticated

logger = logging.getLogger(__name__)

PUBLIC = frozenset({ROLE_CUSTOMER, ROLE_AGENT, ROLE_ADMIN})
ADMIN_ONLY = frozenset({ROLE_ADMIN})
STAFF = frozenset({ROLE_AGENT, ROLE_ADMIN})

OPERATION_ROLES = {
    "create": PUBLIC,
    "list": ADMIN_ONLY,
    "list_my": STAFF,
    "get": STAFF,
    "assign": ADMIN_ONLY,
    "schedule": STAFF,
    "complete": STAFF,
    "cancel": STAFF,
    "stats": ADMIN_ONLY,
    "calendar": STAFF,
}

ROLE_MESSAGES = {
    ADMIN_ONLY: "Admin access required",
    STAFF: "Agent or admin access required",
}


def authorize(operation: str, actor: Actor) -> None:
    allowed = OPERATION_ROLES[operation]
    if actor.role in allowed:
        return
    if actor.role == ROLE_CUSTOMER:
        raise Unauthenticated()
    logger.warning(f"⚠️ {actor.role} {actor.id} denied '{operation}'")
    raise Forbidden(ROLE_MESSAGES.get(allowed))


def ensure_owner(actor: Actor, appointment) -> None:
    """Admins act on any appointment; agents only on the ones assigned to them."""
    if actor.is_admin:
        return
    if appointment.assigned_agent_id is None or appointment.assigned_agent_id != actor.id:
        logger.warning(
            f"⚠️ Agent {actor.id} tried to act on appointment {appointment.id} "
            f"owned by {appointment.assigned_agent_id}"
        )
        raise NotOwned()
