"""
Identity provider adapter.

Staff tokens are issued by the account service (HS256 JWT with ``id``, ``email``,
``role``, ``firstName``, ``lastName`` claims). This module only verifies them and
turns the claims into an ``Actor``. Requests without a token are anonymous
customers.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from .config import JWT_ALGORITHM, JWT_SECRET
from .domain.appointments.errors import Unauthenticated

logger = logging.getLogger(__name__)

ROLE_CUSTOMER = "customer"
ROLE_AGENT = "agent"
ROLE_ADMIN = "admin"
STAFF_ROLES = (ROLE_AGENT, ROLE_ADMIN)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as seen by the appointment engine"""

    id: Optional[int]
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role == ROLE_AGENT

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


ANONYMOUS = Actor(id=None, role=ROLE_CUSTOMER)


def decode_actor_token(token: str) -> Actor:
    """Verify a staff token and build the Actor it describes"""
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired staff token rejected")
        raise Unauthenticated("Invalid or expired token") from e
    except JWTError as e:
        logger.warning(f"⚠️ Invalid staff token: {e}")
        raise Unauthenticated("Invalid or expired token") from e

    role = claims.get("role")
    user_id = claims.get("id")
    if role not in STAFF_ROLES or user_id is None:
        logger.warning(f"⚠️ Token has unusable claims: role={role}, id={user_id}")
        raise Unauthenticated("Invalid token claims")

    try:
        user_id = int(user_id)
    except (TypeError, ValueError) as e:
        raise Unauthenticated("Invalid token claims") from e

    name = " ".join(p for p in (claims.get("firstName"), claims.get("lastName")) if p) or None
    return Actor(id=user_id, role=role, email=claims.get("email"), name=name)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """Resolve the caller; no Authorization header means an anonymous customer"""
    if not credentials:
        return ANONYMOUS
    return decode_actor_token(credentials.credentials)
