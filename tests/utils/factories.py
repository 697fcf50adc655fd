"""Test data factories for users, properties, tokens and request payloads."""

from datetime import datetime, timedelta, timezone
from itertools import count

from jose import jwt

from realestate.auth import Actor
from realestate.config import JWT_ALGORITHM, JWT_SECRET
from realestate.domain.appointments.schemas import AppointmentCreate, CompleteRequest, ScheduleRequest
from realestate.models import Property, User

_sequence = count(1)


def make_user(db, role="agent", is_active=True, user_id=None, first_name="Alex", last_name="Agent"):
    n = next(_sequence)
    user = User(
        id=user_id,
        email=f"{role}{n}@realestate.test",
        password_hash="not-a-real-hash",
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_property(db, status="available", property_id=None, title=None):
    n = next(_sequence)
    prop = Property(
        id=property_id,
        title=title or f"Listing {n}",
        property_type="house",
        address=f"{n} Mabini Street",
        city="Makati",
        price=12500000,
        status=status,
    )
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


def actor_for(user) -> Actor:
    return Actor(id=user.id, role=user.role, email=user.email, name=user.full_name)


def token_for(user, expires_in=timedelta(hours=24), secret=JWT_SECRET, **extra_claims) -> str:
    claims = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    claims.update(extra_claims)
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


def create_request(property_id, email=None, name="Jane Doe", **overrides) -> AppointmentCreate:
    n = next(_sequence)
    payload = {
        "propertyId": property_id,
        "customerName": name,
        "customerEmail": email or f"customer{n}@example.com",
        "customerPhone": "+63 917 555 0101",
        "customerIntent": "buy",
        "customerMessage": "Is parking included?",
    }
    payload.update(overrides)
    return AppointmentCreate(**payload)


def create_payload(property_id, email=None, name="Jane Doe", **overrides) -> dict:
    """JSON body for POST /api/appointments"""
    return create_request(property_id, email=email, name=name, **overrides).model_dump(exclude_none=True)


def schedule_request(day="2025-03-01", at="10:00", notes=None) -> ScheduleRequest:
    return ScheduleRequest(scheduledDate=day, scheduledTime=at, agentNotes=notes)


def complete_request(outcome="interested", **overrides) -> CompleteRequest:
    return CompleteRequest(outcome=outcome, **overrides)
