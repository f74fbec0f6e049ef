# src/shiftlink/models/employee.py
"""SQLAlchemy model for employees and their paired device key."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftlink.db.session import Base
from shiftlink.db.time import as_utc
from shiftlink.models.retail import Register, Retail, employee_register, new_id
from shiftlink.utils.hash import key_fingerprint


class Employee(Base):
    """An employee of a retail, optionally paired with one mobile device."""

    __tablename__ = "employee"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    retail_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("retail.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # App-Id of the paired device; one device may serve several employees of the domain.
    device_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    public_key: Mapped[bytes | None] = mapped_column(LargeBinary(32), nullable=True)
    previous_public_key: Mapped[bytes | None] = mapped_column(LargeBinary(32), nullable=True)
    previous_key_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    paired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    retail: Mapped[Retail] = relationship("Retail")
    registers: Mapped[list[Register]] = relationship(
        "Register",
        secondary=employee_register,
        order_by="Register.name",
    )

    @property
    def key_fingerprint(self) -> str | None:
        """Return a short fingerprint of the active public key."""
        return key_fingerprint(self.public_key) if self.public_key else None

    def grace_key(self, now: datetime) -> bytes | None:
        """Return the superseded key if its rotation grace window is still open."""
        if self.previous_public_key is None or self.previous_key_expires_at is None:
            return None
        if as_utc(self.previous_key_expires_at) <= now:
            return None
        return self.previous_public_key

    def works_at(self, register_id: str) -> bool:
        return any(register.id == register_id for register in self.registers)
