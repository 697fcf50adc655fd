"""Read-only lookups into the property and staff directories."""

from typing import Optional

from sqlalchemy.orm import Session

from ...auth import ROLE_AGENT
from ...models import Property, User
from .errors import AgentInactive, AgentNotFound

# Properties accept viewing requests only while listed as available
VIEWABLE_PROPERTY_STATUSES = frozenset({"available"})


def lock_property(db: Session, property_id: int) -> Optional[Property]:
    """Take the row lock that serializes queue changes for one property"""
    return (
        db.query(Property)
        .filter(Property.id == property_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_active_agent(db: Session, agent_id: int) -> User:
    """Return the agent, or raise if it isn't an agent or has been deactivated"""
    agent = db.query(User).filter(User.id == agent_id, User.role == ROLE_AGENT).first()
    if not agent:
        raise AgentNotFound("Agent not found")
    if not agent.is_active:
        raise AgentInactive()
    return agent
