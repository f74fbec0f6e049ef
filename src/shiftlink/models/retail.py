# src/shiftlink/models/retail.py
"""SQLAlchemy models for retail locations and their registers."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftlink.db.session import Base
from shiftlink.db.time import utcnow


def new_id() -> str:
    """Return a fresh string primary key."""
    return uuid.uuid4().hex


employee_register = Table(
    "employee_register",
    Base.metadata,
    Column("employee_id", String(32), ForeignKey("employee.id", ondelete="CASCADE"), primary_key=True),
    Column("register_id", String(32), ForeignKey("register.id", ondelete="CASCADE"), primary_key=True),
)


class Retail(Base):
    """An employer's retail company within one domain."""

    __tablename__ = "retail"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    tin: Mapped[str | None] = mapped_column(String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    registers: Mapped[list[Register]] = relationship("Register", back_populates="retail")


class Register(Base):
    """A fixed attendance-tracking point belonging to a retail location."""

    __tablename__ = "register"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    retail_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("retail.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    # Radius in meters for allowed check-ins
    allowed_radius_m: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    max_local_devices: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    retail: Mapped[Retail] = relationship("Retail", back_populates="registers")
