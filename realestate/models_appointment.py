"""
Appointment model - customer viewing requests and their scheduling lifecycle
"""

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_STATUSES = ("pending", "assigned", "scheduled", "completed", "cancelled")
CUSTOMER_INTENTS = ("buy", "rent", "invest", "inquire")
OUTCOMES = ("interested", "offer_made", "not_interested", "no_show", "needs_followup")

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"


class Appointment(Base):
    """A customer's request to view a property"""

    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Customer information (no account required, never changed after submission)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_intent = Column(String(20), default="inquire", nullable=False)  # buy, rent, invest, inquire
    customer_message = Column(Text, nullable=True)

    # Position in the property's queue, dense 1..N over non-cancelled rows
    priority_number = Column(Integer, nullable=False)

    # Assignment (agents are deactivated, never deleted, while they hold appointments)
    assigned_agent_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=True)
    assigned_at = Column(DateTime, nullable=True)

    # Schedule (agent fills after calling the customer)
    scheduled_date = Column(Date, nullable=True)
    scheduled_time = Column(Time, nullable=True)

    # Status workflow: pending → assigned → scheduled → completed
    # cancelled is reachable from pending, assigned and scheduled
    status = Column(String(20), default="pending", nullable=False)
    outcome = Column(String(20), nullable=True)  # set only on completion

    agent_notes = Column(Text, nullable=True)
    outcome_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Spam prevention (captured once at submission)
    recaptcha_score = Column(Numeric(3, 2), nullable=True)
    ip_address = Column(String(45), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    property = relationship("Property", back_populates="appointments")
    assigned_agent = relationship("User", foreign_keys=[assigned_agent_id])

    __table_args__ = (
        Index("idx_appointments_property_status", "property_id", "status"),
        Index("idx_appointments_agent_status", "assigned_agent_id", "status"),
        Index("idx_appointments_scheduled", "scheduled_date", "scheduled_time"),
        # Double-booking guard; cancelled rows keep their slot as history
        Index(
            ACTIVE_SLOT_INDEX,
            "property_id",
            "scheduled_date",
            "scheduled_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )
