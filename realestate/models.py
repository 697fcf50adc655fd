"""
Directory tables owned by the listing and account services.

The appointment engine only reads these rows (and row-locks a property while it
re-sequences that property's appointment queue).
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    """Staff account - agents and admins only, customers don't have accounts"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), default="agent", nullable=False, index=True)  # agent, admin
    commission_rate = Column(Numeric(5, 4), default=0.03, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    property_type = Column(String(20), nullable=False)  # house, condo, townhouse, lot, commercial
    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=False)
    price = Column(Numeric(15, 2), nullable=False)

    # Status workflow: available → reserved → sold
    status = Column(String(20), default="available", nullable=False, index=True)

    listed_by_agent_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sold_by_agent_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    sold_date = Column(Date, nullable=True)
    sale_price = Column(Numeric(15, 2), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Deleting a property removes its appointments (database cascade)
    appointments = relationship(
        "Appointment",
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
