"""Appointment service - viewing request lifecycle, priority queue and slot guard

Every mutating operation runs as one transaction:

* create and cancel lock the property row, the serialization point for that
  property's priority queue, so numbering stays dense 1..N;
* assign, schedule and complete lock only the appointment row they change;
* the partial unique index on (property, date, time) is the final word on
  double booking, the pre-check only produces the friendlier error first.
"""

import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import APPOINTMENT_LOCK_TIMEOUT_MS, DUPLICATE_REQUEST_WINDOW_HOURS, RECAPTCHA_MIN_SCORE
from ...models_appointment import APPOINTMENT_STATUSES, Appointment
from ...recaptcha import RecaptchaResult
from . import directory, policies
from . import state_machine as sm
from .errors import (
    AppointmentError,
    AppointmentNotFound,
    Contention,
    DuplicateRequest,
    PropertyNotFound,
    PropertyUnavailable,
    SlotConflict,
    SuspiciousRequest,
    ValidationError,
)
from .notifications import AppointmentNotifier
from .repository import AppointmentRepository, month_bounds
from .schemas import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    CalendarEntry,
    CalendarResponse,
    CompleteRequest,
    Pagination,
    ScheduleRequest,
    StatsResponse,
    StatusCounts,
)

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "No reason provided"
# PostgreSQL lock_not_available
LOCK_NOT_AVAILABLE_SQLSTATE = "55P03"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the columns are stored"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _is_lock_timeout(error: OperationalError) -> bool:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == LOCK_NOT_AVAILABLE_SQLSTATE:
        return True
    # SQLite reports a busy database instead of a lock timeout
    return "database is locked" in str(orig)


class AppointmentService:
    """Service layer for the appointment lifecycle"""

    def __init__(
        self,
        db: Session,
        notifier: Optional[AppointmentNotifier] = None,
        duplicate_window: timedelta = timedelta(hours=DUPLICATE_REQUEST_WINDOW_HOURS),
        min_recaptcha_score: float = RECAPTCHA_MIN_SCORE,
        lock_timeout_ms: int = APPOINTMENT_LOCK_TIMEOUT_MS,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.notifier = notifier or AppointmentNotifier()
        self.duplicate_window = duplicate_window
        self.min_recaptcha_score = min_recaptcha_score
        self.lock_timeout_ms = lock_timeout_ms

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self, operation: str, on_integrity_error: Optional[type] = None):
        """Run a block as one transaction; commit on success, roll back on any error"""
        try:
            if self.db.get_bind().dialect.name == "postgresql":
                self.db.execute(text(f"SET LOCAL lock_timeout = {int(self.lock_timeout_ms)}"))
            yield
            self.db.commit()
        except AppointmentError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            if on_integrity_error is None:
                logger.exception(f"❌ Integrity error during {operation}")
                raise
            logger.warning(f"⚠️ Store constraint rejected {operation}: {e.orig}")
            raise on_integrity_error() from e
        except OperationalError as e:
            self.db.rollback()
            if _is_lock_timeout(e):
                logger.warning(f"⚠️ Lock timeout during {operation}, nothing was written")
                raise Contention() from e
            raise
        except Exception:
            self.db.rollback()
            raise

    def _get_appointment(self, appointment_id: int, for_update: bool = False) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id, for_update=for_update)
        if not appointment:
            raise AppointmentNotFound()
        return appointment

    # ------------------------------------------------------------------
    # create → pending
    # ------------------------------------------------------------------

    def check_abuse_score(self, recaptcha: Optional[RecaptchaResult]) -> Optional[float]:
        """Reject bot-like submissions; returns the score to store (None when not scored)"""
        if recaptcha is None:
            return None
        if not recaptcha.success:
            raise SuspiciousRequest("reCAPTCHA verification failed")
        if recaptcha.score is not None and recaptcha.score < self.min_recaptcha_score:
            logger.warning(f"⚠️ Submission blocked, reCAPTCHA score {recaptcha.score}")
            raise SuspiciousRequest()
        return recaptcha.score

    def create_appointment(
        self,
        data: AppointmentCreate,
        actor: Actor,
        ip_address: Optional[str] = None,
        recaptcha: Optional[RecaptchaResult] = None,
    ) -> Appointment:
        """Submit a viewing request and queue it behind earlier requests for the property"""
        policies.authorize("create", actor)
        score = self.check_abuse_score(recaptcha)

        with self._atomic("create appointment"):
            prop = directory.lock_property(self.db, data.propertyId)
            if not prop:
                raise PropertyNotFound()
            if prop.status not in directory.VIEWABLE_PROPERTY_STATUSES:
                logger.warning(f"⚠️ Viewing request for property {prop.id} in status '{prop.status}'")
                raise PropertyUnavailable()

            now = utcnow()
            duplicate = self.repo.find_recent_request(
                self.db, prop.id, data.customerEmail, since=now - self.duplicate_window
            )
            if duplicate:
                logger.warning(
                    f"⚠️ Duplicate viewing request for property {prop.id} "
                    f"(existing appointment {duplicate.id})"
                )
                raise DuplicateRequest()

            appointment = self.repo.add(
                self.db,
                property_id=prop.id,
                customer_name=data.customerName,
                customer_email=data.customerEmail,
                customer_phone=data.customerPhone,
                customer_intent=data.customerIntent,
                customer_message=data.customerMessage,
                priority_number=self.repo.next_priority_number(self.db, prop.id),
                status=sm.PENDING,
                recaptcha_score=score,
                ip_address=ip_address,
                created_at=now,
            )

        logger.info(
            f"✅ Appointment {appointment.id} created for property {prop.id} "
            f"(priority #{appointment.priority_number})"
        )
        self.notifier.viewing_requested(appointment, prop)
        return appointment

    # ------------------------------------------------------------------
    # pending → assigned
    # ------------------------------------------------------------------

    def assign_agent(self, appointment_id: int, agent_id: int, actor: Actor) -> Appointment:
        policies.authorize("assign", actor)

        with self._atomic("assign agent"):
            appointment = self._get_appointment(appointment_id, for_update=True)
            sm.ensure_can_apply(sm.ASSIGN, appointment.status)
            agent = directory.get_active_agent(self.db, agent_id)

            sm.apply(
                appointment,
                sm.ASSIGN,
                assigned_agent_id=agent.id,
                assigned_at=utcnow(),
            )

        logger.info(f"✅ Appointment {appointment_id} assigned to agent {agent.id} by admin {actor.id}")
        self.notifier.agent_assigned(appointment, agent)
        return appointment

    # ------------------------------------------------------------------
    # assigned → scheduled
    # ------------------------------------------------------------------

    def schedule_appointment(self, appointment_id: int, data: ScheduleRequest, actor: Actor) -> Appointment:
        policies.authorize("schedule", actor)

        with self._atomic("schedule appointment", on_integrity_error=SlotConflict):
            appointment = self._get_appointment(appointment_id, for_update=True)
            policies.ensure_owner(actor, appointment)
            sm.ensure_can_apply(sm.SCHEDULE, appointment.status)

            holder = self.repo.find_slot_holder(
                self.db,
                appointment.property_id,
                data.scheduledDate,
                data.scheduledTime,
                exclude_id=appointment.id,
            )
            if holder:
                logger.warning(
                    f"⚠️ Slot {data.scheduledDate} {data.scheduledTime} for property "
                    f"{appointment.property_id} already held by appointment {holder.id}"
                )
                raise SlotConflict()

            sm.apply(
                appointment,
                sm.SCHEDULE,
                scheduled_date=data.scheduledDate,
                scheduled_time=data.scheduledTime,
                agent_notes=sm.append_note(appointment.agent_notes, data.agentNotes),
            )
            # surface a unique-index violation here rather than at commit
            self.db.flush()

        logger.info(
            f"✅ Appointment {appointment_id} scheduled for {data.scheduledDate} {data.scheduledTime}"
        )
        self.notifier.viewing_scheduled(appointment)
        return appointment

    # ------------------------------------------------------------------
    # scheduled → completed
    # ------------------------------------------------------------------

    def complete_appointment(self, appointment_id: int, data: CompleteRequest, actor: Actor) -> Appointment:
        policies.authorize("complete", actor)

        with self._atomic("complete appointment"):
            appointment = self._get_appointment(appointment_id, for_update=True)
            policies.ensure_owner(actor, appointment)
            sm.ensure_can_apply(sm.COMPLETE, appointment.status)

            changes = {
                "outcome": data.outcome,
                "outcome_notes": data.outcomeNotes,
                "completed_at": utcnow(),
            }
            if data.agentNotes:
                changes["agent_notes"] = sm.append_note(appointment.agent_notes, data.agentNotes)
            sm.apply(appointment, sm.COMPLETE, **changes)

        logger.info(f"✅ Appointment {appointment_id} completed with outcome '{data.outcome}'")
        return appointment

    # ------------------------------------------------------------------
    # pending/assigned/scheduled → cancelled
    # ------------------------------------------------------------------

    def cancel_appointment(self, appointment_id: int, reason: Optional[str], actor: Actor) -> Appointment:
        """Cancel and close the gap it leaves in the property's priority queue"""
        policies.authorize("cancel", actor)

        with self._atomic("cancel appointment"):
            appointment = self._get_appointment(appointment_id)
            policies.ensure_owner(actor, appointment)
            sm.ensure_can_apply(sm.CANCEL, appointment.status)

            # Property lock first, then re-read the row: a concurrent cancel may have won
            directory.lock_property(self.db, appointment.property_id)
            appointment = self._get_appointment(appointment_id, for_update=True)
            policies.ensure_owner(actor, appointment)

            sm.apply(
                appointment,
                sm.CANCEL,
                agent_notes=sm.append_note(
                    appointment.agent_notes, f"Cancelled: {reason or DEFAULT_CANCEL_REASON}"
                ),
            )
            self.db.flush()
            renumbered = self.repo.close_priority_gap(
                self.db, appointment.property_id, appointment.priority_number, appointment.id
            )

        logger.info(
            f"✅ Appointment {appointment_id} cancelled by {actor.role} {actor.id}, "
            f"{renumbered} later request(s) moved up"
        )
        self.notifier.viewing_cancelled(appointment)
        return appointment

    # ------------------------------------------------------------------
    # Read projections
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int, actor: Actor) -> AppointmentResponse:
        policies.authorize("get", actor)
        appointment = self.repo.get_detail(self.db, appointment_id)
        if not appointment:
            raise AppointmentNotFound()
        policies.ensure_owner(actor, appointment)
        return AppointmentResponse.from_appointment(appointment, include_price=True)

    def list_appointments(
        self, actor: Actor, status: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> AppointmentListResponse:
        policies.authorize("list", actor)
        self._validate_status_filter(status)
        appointments, total = self.repo.list_for_admin(self.db, status, page, limit)
        return AppointmentListResponse(
            appointments=[AppointmentResponse.from_appointment(a) for a in appointments],
            pagination=self._pagination(page, limit, total),
        )

    def list_my_appointments(
        self, actor: Actor, status: Optional[str] = None, page: int = 1, limit: int = 20
    ) -> AppointmentListResponse:
        policies.authorize("list_my", actor)
        self._validate_status_filter(status)
        appointments, total = self.repo.list_for_agent(self.db, actor.id, status, page, limit)
        return AppointmentListResponse(
            appointments=[AppointmentResponse.from_appointment(a, include_price=True) for a in appointments],
            pagination=self._pagination(page, limit, total),
        )

    def get_calendar(
        self,
        actor: Actor,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> CalendarResponse:
        """Shared calendar of every agent's viewings, so nobody books over a colleague"""
        policies.authorize("calendar", actor)

        if start_date or end_date:
            if start_date and end_date and start_date > end_date:
                raise ValidationError("startDate must be on or before endDate")
        elif month is not None or year is not None:
            if month is None or year is None:
                raise ValidationError("month and year must be provided together")
            if not 1 <= month <= 12:
                raise ValidationError("month must be between 1 and 12")
            start_date, end_date = month_bounds(month, year)

        appointments = self.repo.list_calendar(self.db, start_date, end_date)
        return CalendarResponse(
            appointments=[
                CalendarEntry(
                    id=a.id,
                    propertyId=a.property_id,
                    propertyTitle=a.property.title if a.property else None,
                    propertyAddress=a.property.address if a.property else None,
                    propertyCity=a.property.city if a.property else None,
                    customerName=a.customer_name,
                    scheduledDate=a.scheduled_date,
                    scheduledTime=a.scheduled_time,
                    status=a.status,
                    assignedAgentId=a.assigned_agent_id,
                    agentName=a.assigned_agent.full_name if a.assigned_agent else None,
                )
                for a in appointments
            ]
        )

    def get_stats(self, actor: Actor) -> StatsResponse:
        policies.authorize("stats", actor)
        by_status = self.repo.count_by_status(self.db)
        counts = {status: by_status.get(status, 0) for status in APPOINTMENT_STATUSES}
        return StatsResponse(
            stats=StatusCounts(total=sum(by_status.values()), **counts),
            outcomes=self.repo.count_completed_by_outcome(self.db),
        )

    @staticmethod
    def _validate_status_filter(status: Optional[str]) -> None:
        if status and status not in APPOINTMENT_STATUSES:
            raise ValidationError(f"Unknown status '{status}'")

    @staticmethod
    def _pagination(page: int, limit: int, total: int) -> Pagination:
        return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)
