"""Appointment repository - Database operations for appointments

Nothing here commits; the service decides where a transaction ends.
"""

import calendar
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from ...models_appointment import Appointment
from .state_machine import ASSIGNED, CANCELLED, COMPLETED, PENDING, SCHEDULED

CALENDAR_STATUSES = (SCHEDULED, COMPLETED)


class AppointmentRepository:
    """Repository for appointment database operations"""

    # Lookups

    @staticmethod
    def get_by_id(db: Session, appointment_id: int, for_update: bool = False) -> Optional[Appointment]:
        query = db.query(Appointment).filter(Appointment.id == appointment_id)
        if for_update:
            # refresh an already-loaded instance with the locked row's values
            query = query.with_for_update().populate_existing()
        return query.first()

    @staticmethod
    def get_detail(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with its property and agent loaded"""
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.property), joinedload(Appointment.assigned_agent))
            .filter(Appointment.id == appointment_id)
            .first()
        )

    # Priority queue

    @staticmethod
    def next_priority_number(db: Session, property_id: int) -> int:
        """Next queue position for a property; caller must hold the property lock"""
        current_max = (
            db.query(func.max(Appointment.priority_number))
            .filter(Appointment.property_id == property_id, Appointment.status != CANCELLED)
            .scalar()
        )
        return (current_max or 0) + 1

    @staticmethod
    def close_priority_gap(db: Session, property_id: int, removed_priority: int, removed_id: int) -> int:
        """Shift later queue entries up by one after an appointment leaves the queue.

        Returns the number of appointments renumbered.
        """
        return (
            db.query(Appointment)
            .filter(
                Appointment.property_id == property_id,
                Appointment.priority_number > removed_priority,
                Appointment.status != CANCELLED,
                Appointment.id != removed_id,
            )
            .update(
                {Appointment.priority_number: Appointment.priority_number - 1},
                synchronize_session="fetch",
            )
        )

    @staticmethod
    def active_priority_numbers(db: Session, property_id: int) -> list[int]:
        rows = (
            db.query(Appointment.priority_number)
            .filter(Appointment.property_id == property_id, Appointment.status != CANCELLED)
            .order_by(Appointment.priority_number)
            .all()
        )
        return [row[0] for row in rows]

    # Guards

    @staticmethod
    def find_recent_request(
        db: Session, property_id: int, customer_email: str, since: datetime
    ) -> Optional[Appointment]:
        """Find a non-cancelled request from the same email for the property since ``since``"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.property_id == property_id,
                func.lower(Appointment.customer_email) == customer_email.lower(),
                Appointment.status != CANCELLED,
                Appointment.created_at > since,
            )
            .first()
        )

    @staticmethod
    def find_slot_holder(
        db: Session,
        property_id: int,
        scheduled_date: date,
        scheduled_time: time,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """Find the non-cancelled appointment already occupying a slot"""
        query = db.query(Appointment).filter(
            Appointment.property_id == property_id,
            Appointment.scheduled_date == scheduled_date,
            Appointment.scheduled_time == scheduled_time,
            Appointment.status != CANCELLED,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    # Writes

    @staticmethod
    def add(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    # Read projections

    @staticmethod
    def list_for_admin(
        db: Session, status: Optional[str], page: int, limit: int
    ) -> tuple[list[Appointment], int]:
        """All appointments: pending first, then queue order, newest first within a tie"""
        status_rank = case(
            (Appointment.status == PENDING, 1),
            (Appointment.status == ASSIGNED, 2),
            (Appointment.status == SCHEDULED, 3),
            else_=4,
        )

        query = db.query(Appointment)
        if status:
            query = query.filter(Appointment.status == status)

        total = query.count()
        appointments = (
            query.options(joinedload(Appointment.property), joinedload(Appointment.assigned_agent))
            .order_by(status_rank, Appointment.priority_number.asc(), Appointment.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return appointments, total

    @staticmethod
    def list_for_agent(
        db: Session, agent_id: int, status: Optional[str], page: int, limit: int
    ) -> tuple[list[Appointment], int]:
        """An agent's appointments: work to schedule first, then upcoming viewings by date"""
        status_rank = case(
            (Appointment.status == ASSIGNED, 1),
            (Appointment.status == SCHEDULED, 2),
            else_=3,
        )

        query = db.query(Appointment).filter(Appointment.assigned_agent_id == agent_id)
        if status:
            query = query.filter(Appointment.status == status)

        total = query.count()
        appointments = (
            query.options(joinedload(Appointment.property))
            .order_by(
                status_rank,
                # unscheduled rows sort after dated ones on every backend
                Appointment.scheduled_date.is_(None),
                Appointment.scheduled_date.asc(),
                Appointment.priority_number.asc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return appointments, total

    @staticmethod
    def list_calendar(
        db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Appointment]:
        """Scheduled and completed viewings across all agents, in time order"""
        query = db.query(Appointment).filter(
            Appointment.scheduled_date.isnot(None),
            Appointment.status.in_(CALENDAR_STATUSES),
        )
        if start_date is not None:
            query = query.filter(Appointment.scheduled_date >= start_date)
        if end_date is not None:
            query = query.filter(Appointment.scheduled_date <= end_date)

        return (
            query.options(joinedload(Appointment.property), joinedload(Appointment.assigned_agent))
            .order_by(Appointment.scheduled_date.asc(), Appointment.scheduled_time.asc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session) -> dict[str, int]:
        rows = db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def count_completed_by_outcome(db: Session) -> dict[str, int]:
        rows = (
            db.query(Appointment.outcome, func.count(Appointment.id))
            .filter(Appointment.status == COMPLETED, Appointment.outcome.isnot(None))
            .group_by(Appointment.outcome)
            .all()
        )
        return {outcome: count for outcome, count in rows}


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last day of a calendar month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
