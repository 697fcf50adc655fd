"""Appointment domain schemas - Pydantic models for validation and responses"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import parse_time_of_day, validate_email, validate_phone

CustomerIntent = Literal["buy", "rent", "invest", "inquire"]
Outcome = Literal["interested", "offer_made", "not_interested", "no_show", "needs_followup"]
AppointmentStatus = Literal["pending", "assigned", "scheduled", "completed", "cancelled"]


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    return value.strip() or None


# ============================================================================
# REQUESTS
# ============================================================================


class AppointmentCreate(BaseModel):
    """Public viewing request form"""

    propertyId: int = Field(..., ge=1)
    customerName: str = Field(..., max_length=200)
    customerEmail: str = Field(..., max_length=255)
    customerPhone: str = Field(..., max_length=20)
    customerIntent: CustomerIntent = "inquire"
    customerMessage: Optional[str] = Field(None, max_length=1000)
    recaptchaToken: Optional[str] = None

    @field_validator("customerName")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def validate_customer_phone(cls, v):
        return validate_phone(v)

    @field_validator("customerMessage")
    @classmethod
    def strip_message(cls, v):
        if v is None:
            return v
        return v.strip() or None


class AssignAgentRequest(BaseModel):
    agentId: int = Field(..., ge=1)


class ScheduleRequest(BaseModel):
    """Agent sets the viewing slot after calling the customer"""

    scheduledDate: date
    scheduledTime: time
    agentNotes: Optional[str] = None

    @field_validator("scheduledTime", mode="before")
    @classmethod
    def validate_time(cls, v):
        return parse_time_of_day(v)

    @field_validator("agentNotes")
    @classmethod
    def strip_notes(cls, v):
        return _strip_or_none(v)


class CompleteRequest(BaseModel):
    outcome: Outcome
    outcomeNotes: Optional[str] = None
    agentNotes: Optional[str] = None

    @field_validator("outcomeNotes", "agentNotes")
    @classmethod
    def strip_notes(cls, v):
        return _strip_or_none(v)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v):
        return _strip_or_none(v)


# ============================================================================
# RESPONSES
# ============================================================================


class AppointmentResponse(BaseModel):
    """External representation of an appointment"""

    id: int
    propertyId: int
    propertyTitle: Optional[str] = None
    propertyAddress: Optional[str] = None
    propertyCity: Optional[str] = None
    propertyPrice: Optional[float] = None
    customerName: str
    customerEmail: str
    customerPhone: str
    customerIntent: CustomerIntent
    customerMessage: Optional[str] = None
    priorityNumber: int
    status: AppointmentStatus
    assignedAgentId: Optional[int] = None
    assignedAgentName: Optional[str] = None
    assignedAt: Optional[datetime] = None
    scheduledDate: Optional[date] = None
    scheduledTime: Optional[time] = None
    outcome: Optional[Outcome] = None
    outcomeNotes: Optional[str] = None
    agentNotes: Optional[str] = None
    adminNotes: Optional[str] = None
    recaptchaScore: Optional[float] = None
    ipAddress: Optional[str] = None
    completedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_appointment(cls, a, include_price: bool = False) -> "AppointmentResponse":
        prop = a.property
        agent = a.assigned_agent
        return cls(
            id=a.id,
            propertyId=a.property_id,
            propertyTitle=prop.title if prop else None,
            propertyAddress=prop.address if prop else None,
            propertyCity=prop.city if prop else None,
            propertyPrice=float(prop.price) if include_price and prop and prop.price is not None else None,
            customerName=a.customer_name,
            customerEmail=a.customer_email,
            customerPhone=a.customer_phone,
            customerIntent=a.customer_intent,
            customerMessage=a.customer_message,
            priorityNumber=a.priority_number,
            status=a.status,
            assignedAgentId=a.assigned_agent_id,
            assignedAgentName=agent.full_name if agent else None,
            assignedAt=a.assigned_at,
            scheduledDate=a.scheduled_date,
            scheduledTime=a.scheduled_time,
            outcome=a.outcome,
            outcomeNotes=a.outcome_notes,
            agentNotes=a.agent_notes,
            adminNotes=a.admin_notes,
            recaptchaScore=float(a.recaptcha_score) if a.recaptcha_score is not None else None,
            ipAddress=a.ip_address,
            completedAt=a.completed_at,
            createdAt=a.created_at,
            updatedAt=a.updated_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: list[AppointmentResponse]
    pagination: Pagination


class CalendarEntry(BaseModel):
    id: int
    propertyId: int
    propertyTitle: Optional[str] = None
    propertyAddress: Optional[str] = None
    propertyCity: Optional[str] = None
    customerName: str
    scheduledDate: date
    scheduledTime: time
    status: AppointmentStatus
    assignedAgentId: Optional[int] = None
    agentName: Optional[str] = None


class CalendarResponse(BaseModel):
    success: bool = True
    appointments: list[CalendarEntry]


class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    assigned: int = 0
    scheduled: int = 0
    completed: int = 0
    cancelled: int = 0


class StatsResponse(BaseModel):
    success: bool = True
    stats: StatusCounts
    outcomes: dict[str, int]


class CreateAppointmentResponse(BaseModel):
    success: bool = True
    message: str
    appointmentId: int


class ActionResponse(BaseModel):
    success: bool = True
    message: str
    appointment: Optional[AppointmentResponse] = None
