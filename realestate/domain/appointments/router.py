"""Appointment router - FastAPI endpoints for viewing requests"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...recaptcha import verify_recaptcha
from .notifications import AppointmentNotifier
from .schemas import (
    ActionResponse,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AssignAgentRequest,
    CalendarResponse,
    CancelRequest,
    CompleteRequest,
    CreateAppointmentResponse,
    ScheduleRequest,
    StatsResponse,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


def get_appointment_service(
    background_tasks: BackgroundTasks, db: Session = Depends(get_db)
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, notifier=AppointmentNotifier(background_tasks))


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("", response_model=CreateAppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    request: Request,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Submit a viewing request (no account required)"""
    ip_address = request.client.host if request.client else None

    recaptcha = None
    if data.recaptchaToken:
        recaptcha = await verify_recaptcha(data.recaptchaToken, ip_address)

    appointment = service.create_appointment(data, actor, ip_address=ip_address, recaptcha=recaptcha)
    return CreateAppointmentResponse(
        message="Your viewing request has been submitted. We will contact you within 24 hours.",
        appointmentId=appointment.id,
    )


# ============================================================================
# READ PROJECTIONS
# ============================================================================


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin - all appointments, pending first then by queue position"""
    return service.list_appointments(actor, status=status, page=page, limit=limit)


@router.get("/my", response_model=AppointmentListResponse)
async def list_my_appointments(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Agent - appointments assigned to me"""
    return service.list_my_appointments(actor, status=status, page=page, limit=limit)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin - counts per status and per completed outcome"""
    return service.get_stats(actor)


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    month: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Agent/Admin - shared calendar of all scheduled viewings across agents"""
    return service.get_calendar(actor, start_date=start_date, end_date=end_date, month=month, year=year)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin/Agent - one appointment with property and agent details"""
    return service.get_appointment(appointment_id, actor)


# ============================================================================
# LIFECYCLE TRANSITIONS
# ============================================================================


@router.put("/{appointment_id}/assign", response_model=ActionResponse)
async def assign_agent(
    appointment_id: int,
    data: AssignAgentRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin - assign an agent to a pending request"""
    appointment = service.assign_agent(appointment_id, data.agentId, actor)
    return ActionResponse(
        message="Agent assigned successfully",
        appointment=AppointmentResponse.from_appointment(appointment),
    )


@router.put("/{appointment_id}/schedule", response_model=ActionResponse)
async def schedule_appointment(
    appointment_id: int,
    data: ScheduleRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Agent - set the viewing date and time after calling the customer"""
    appointment = service.schedule_appointment(appointment_id, data, actor)
    return ActionResponse(
        message="Viewing scheduled successfully",
        appointment=AppointmentResponse.from_appointment(appointment),
    )


@router.put("/{appointment_id}/complete", response_model=ActionResponse)
async def complete_appointment(
    appointment_id: int,
    data: CompleteRequest,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Agent - record the outcome of a viewing"""
    appointment = service.complete_appointment(appointment_id, data, actor)
    return ActionResponse(
        message="Viewing marked as completed",
        appointment=AppointmentResponse.from_appointment(appointment),
    )


@router.put("/{appointment_id}/cancel", response_model=ActionResponse)
async def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Admin/Agent - cancel an open appointment"""
    reason = data.reason if data else None
    appointment = service.cancel_appointment(appointment_id, reason, actor)
    return ActionResponse(
        message="Appointment cancelled",
        appointment=AppointmentResponse.from_appointment(appointment),
    )
