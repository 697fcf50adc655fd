"""Appointment domain errors.

Every business-rule failure raised by the appointment service is an
``AppointmentError``. The API layer turns it into a structured
``{"success": false, "kind": ..., "message": ...}`` body using ``kind`` and
``status_code``; nothing in the service returns raw HTTP errors.
"""

from typing import Optional


class AppointmentError(Exception):
    """Base class for appointment engine errors."""

    kind = "error"
    status_code = 500
    default_message = "Appointment request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "message": self.message}


# Validation


class ValidationError(AppointmentError):
    kind = "validation_error"
    status_code = 400
    default_message = "Validation failed"


# Not found


class NotFound(AppointmentError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class AppointmentNotFound(NotFound):
    default_message = "Appointment not found"


class PropertyNotFound(NotFound):
    default_message = "Property not found"


class AgentNotFound(NotFound):
    default_message = "Agent not found"


# Conflict


class Conflict(AppointmentError):
    kind = "conflict"
    status_code = 409
    default_message = "Request conflicts with the current state"


class DuplicateRequest(Conflict):
    default_message = (
        "You have already submitted a request for this property. We will contact you soon."
    )


class SlotConflict(Conflict):
    default_message = (
        "This time slot is already booked for this property. Please choose a different time."
    )


class Contention(Conflict):
    default_message = "The property is busy with another request. Please try again."


class PropertyUnavailable(Conflict):
    default_message = "Property is no longer available for viewing"


class AgentInactive(Conflict):
    default_message = "Agent is inactive and cannot receive appointments"


# State machine


class InvalidTransition(AppointmentError):
    kind = "invalid_transition"
    status_code = 409
    default_message = "This action is not allowed for the appointment's current status"

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot move appointment from '{current}' to '{target}'")


# Authorization


class Forbidden(AppointmentError):
    kind = "forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class Unauthenticated(Forbidden):
    status_code = 401
    default_message = "Access token required"


class NotOwned(Forbidden):
    default_message = "Appointment is not assigned to you"


class SuspiciousRequest(Forbidden):
    default_message = "Request blocked due to suspicious activity"


# Infrastructure


class Unavailable(AppointmentError):
    kind = "unavailable"
    status_code = 503
    default_message = "Service temporarily unavailable. Please try again later."
