# src/shiftlink/models/local_device.py
"""Physical terminals installed at a register."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shiftlink.db.session import Base
from shiftlink.db.time import utcnow
from shiftlink.models.retail import new_id


class LocalDevice(Base):
    """A register-scoped terminal whose identity can be attached to attendance events."""

    __tablename__ = "local_device"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    register_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("register.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Hardware identifier reported by the terminal itself.
    device_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    label: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
