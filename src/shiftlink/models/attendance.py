# src/shiftlink/models/attendance.py
"""Insert-only attendance history."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String, event
from sqlalchemy.orm import Mapped, mapped_column

from shiftlink.core.errors import AttendanceError
from shiftlink.db.session import Base
from shiftlink.db.time import as_utc, utcnow
from shiftlink.models.retail import new_id


class AttendanceEventType(str, enum.Enum):
    CHECK_IN = "checkIn"
    CHECK_OUT = "checkOut"
    BREAK = "break"
    PAUSE = "pause"
    SPECIFIC_BREAK = "specificBreak"


class AttendanceEvent(Base):
    """One accepted attendance action.

    Rows are never updated or deleted. ``local_device_id`` is deliberately not a
    foreign key: removing a terminal leaves a dangling reference in history
    instead of rewriting it.
    """

    __tablename__ = "attendance_event"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    register_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    retail_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    distance_m: Mapped[float | None] = mapped_column(Float, nullable=True)
    local_device_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    @property
    def action(self) -> str | None:
        """Return ``start``/``end`` for shift interruptions."""
        return self.details.get("action") if self.details else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "employeeId": self.employee_id,
            "registerId": self.register_id,
            "retailId": self.retail_id,
            "timestamp": as_utc(self.timestamp).isoformat(),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "distance": self.distance_m,
            "localDeviceId": self.local_device_id,
            "details": dict(self.details or {}),
        }


class LocalDeviceConfirmation(Base):
    """Append-only record selecting the terminal of an ambiguous attendance write."""

    __tablename__ = "local_device_confirmation"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("attendance_event.id"),
        nullable=False,
        unique=True,
    )
    local_device_id: Mapped[str] = mapped_column(String(32), nullable=False)
    confirmed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


@event.listens_for(AttendanceEvent, "before_update")
def _reject_update(mapper: Any, connection: Any, target: AttendanceEvent) -> None:
    raise AttendanceError(f"Attendance event {target.id} is immutable")


@event.listens_for(AttendanceEvent, "before_delete")
def _reject_delete(mapper: Any, connection: Any, target: AttendanceEvent) -> None:
    raise AttendanceError(f"Attendance event {target.id} is immutable")
