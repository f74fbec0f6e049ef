"""Weekly opening hours of registers and the days employees work at them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlink.core.errors import ValidationError
from shiftlink.db.time import as_utc
from shiftlink.models import EmployeeWorkday, RegisterWorkingHours

logger = logging.getLogger(__name__)


@dataclass
class ShiftWindow:
    """Today's opening hours of a register; ``hours`` is None for unscheduled registers."""

    hours: RegisterWorkingHours | None
    now: datetime

    def is_late(self) -> bool:
        return self.hours is not None and as_utc(self.now).time() > self.hours.start

    def is_early(self) -> bool:
        return self.hours is not None and as_utc(self.now).time() < self.hours.end


class WorkScheduleService:
    """Answers whether attendance may be recorded at a register right now.

    Hours are compared on the UTC wall clock, the same clock that bounds an
    attendance day.
    """

    def hours_for(self, db: Session, register_id: str, weekday: int) -> RegisterWorkingHours | None:
        return db.scalar(
            select(RegisterWorkingHours).where(
                RegisterWorkingHours.register_id == register_id,
                RegisterWorkingHours.weekday == weekday,
            )
        )

    def has_schedule(self, db: Session, register_id: str) -> bool:
        row = db.scalar(
            select(RegisterWorkingHours.id).where(RegisterWorkingHours.register_id == register_id).limit(1)
        )
        return row is not None

    def works_on(self, db: Session, employee_id: str, register_id: str, weekday: int) -> bool:
        """Return whether the employee works at the register on ``weekday``.

        Assignments without workday rows cover every day.
        """
        rows = {
            row.weekday: row.is_available
            for row in db.scalars(
                select(EmployeeWorkday).where(
                    EmployeeWorkday.employee_id == employee_id,
                    EmployeeWorkday.register_id == register_id,
                )
            )
        }
        if not rows:
            return True
        return rows.get(weekday, False)

    def open_window(self, db: Session, employee_id: str, register_id: str, now: datetime) -> ShiftWindow:
        """Check that a check-in or check-out is allowed at ``now``.

        Raises:
            ValidationError: ``srv_you_not_working_today``, ``srv_workplace_closed_today``
                or ``srv_outside_working_hours``.
        """
        weekday = as_utc(now).weekday()
        if not self.works_on(db, employee_id, register_id, weekday):
            raise ValidationError(
                f"Employee {employee_id} does not work at register {register_id} today",
                code="srv_you_not_working_today",
            )

        hours = self.hours_for(db, register_id, weekday)
        if hours is None:
            if self.has_schedule(db, register_id):
                raise ValidationError(f"Register {register_id} is closed today", code="srv_workplace_closed_today")
            return ShiftWindow(hours=None, now=now)
        if not hours.is_available:
            raise ValidationError(f"Register {register_id} is closed today", code="srv_workplace_closed_today")

        if as_utc(now).time() > hours.end:
            logger.info(
                "Attendance at register %s after closing time %s",
                register_id,
                hours.end.strftime("%H:%M"),
            )
            raise ValidationError(
                f"Register {register_id} closed at {hours.end.strftime('%H:%M')}",
                code="srv_outside_working_hours",
            )
        return ShiftWindow(hours=hours, now=now)
