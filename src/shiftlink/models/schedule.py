# src/shiftlink/models/schedule.py
"""SQLAlchemy models for weekly register hours and employee workdays."""

from __future__ import annotations

from datetime import time

from sqlalchemy import Boolean, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shiftlink.db.session import Base
from shiftlink.models.retail import new_id

# Weekdays follow ``datetime.weekday()``: 0 is Monday.
WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class RegisterWorkingHours(Base):
    """Opening hours of a register on one weekday (UTC wall clock).

    A register without any rows has no schedule and accepts attendance all day.
    """

    __tablename__ = "register_working_hours"
    __table_args__ = (
        UniqueConstraint("register_id", "weekday", name="uq_register_working_hours_register_weekday"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    register_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("register.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start: Mapped[time] = mapped_column(Time, nullable=False, default=time(8, 0))
    end: Mapped[time] = mapped_column(Time, nullable=False, default=time(17, 0))

    def to_dict(self) -> dict[str, object]:
        return {
            "day": WEEKDAYS[self.weekday],
            "isAvailable": self.is_available,
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
        }


class EmployeeWorkday(Base):
    """Whether an employee works at an assigned register on one weekday.

    An assignment without any rows means the employee works every day the
    register is open.
    """

    __tablename__ = "employee_workday"
    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "register_id",
            "weekday",
            name="uq_employee_workday_employee_register_weekday",
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    employee_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    register_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("register.id", ondelete="CASCADE"),
        nullable=False,
    )
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
