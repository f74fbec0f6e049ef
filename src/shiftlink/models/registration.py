# src/shiftlink/models/registration.py
"""Single-use registration tokens that bind a device key to an employee."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftlink.db.session import Base
from shiftlink.db.time import as_utc, utcnow
from shiftlink.models.employee import Employee


class RegistrationState(str, enum.Enum):
    """Lifecycle of a registration token: Issued -> Consumed | Expired."""

    ISSUED = "issued"
    CONSUMED = "consumed"
    EXPIRED = "expired"


class RegistrationToken(Base):
    """A pairing token handed to an employee via QR code or deep link."""

    __tablename__ = "registration"

    token_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    retail_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("retail.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    employee: Mapped[Employee] = relationship("Employee")

    def state(self, now: datetime | None = None) -> RegistrationState:
        """Return the token state at ``now``; consumption wins over expiry."""
        if self.consumed_at is not None:
            return RegistrationState.CONSUMED
        if as_utc(self.expires_at) <= (now or utcnow()):
            return RegistrationState.EXPIRED
        return RegistrationState.ISSUED
