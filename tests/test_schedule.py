# mypy: ignore-errors
# tests/test_schedule.py
"""Tests for register working hours and employee workdays."""

from __future__ import annotations

from datetime import UTC, datetime, time

import pytest

from shiftlink.core.errors import ValidationError
from shiftlink.models import WEEKDAYS, AttendanceEvent, EmployeeWorkday, RegisterWorkingHours
from shiftlink.schemas.attendance import AttendancePayload
from shiftlink.services.attendance import AttendanceService
from shiftlink.services.workplaces import WorkplaceService
from tests.helpers import REGISTER_LAT, REGISTER_LON

MORNING = datetime(2026, 10, 21, 7, 30, tzinfo=UTC)
WEEKDAY = MORNING.weekday()
OTHER_WEEKDAY = (WEEKDAY + 1) % 7


def _at(hour: int, minute: int = 0) -> datetime:
    return MORNING.replace(hour=hour, minute=minute)


def _service(now: datetime) -> AttendanceService:
    return AttendanceService(clock=lambda: now)


def _payload(register) -> AttendancePayload:
    return AttendancePayload(register_id=register.id, latitude=REGISTER_LAT, longitude=REGISTER_LON)


@pytest.fixture()
def opening_hours(db_session, register):
    def _open(weekday: int = WEEKDAY, *, is_available: bool = True, start=time(8, 0), end=time(17, 0)):
        hours = RegisterWorkingHours(
            register_id=register.id,
            weekday=weekday,
            is_available=is_available,
            start=start,
            end=end,
        )
        db_session.add(hours)
        db_session.commit()
        return hours

    return _open


def test_unscheduled_register_accepts_attendance_all_day(db_session, employee, register) -> None:
    outcome = _service(_at(23, 30)).check_in_out(db_session, employee, _payload(register))

    assert outcome.code == "srv_checked_in"
    assert outcome.event.details == {}


def test_early_check_out_is_flagged(db_session, employee, register, opening_hours) -> None:
    opening_hours()

    on_time = _service(_at(7, 55)).check_in_out(db_session, employee, _payload(register))
    early = _service(_at(12)).check_in_out(db_session, employee, _payload(register))

    assert on_time.code == "srv_checked_in"
    assert on_time.event.details == {}
    assert early.code == "srv_checked_out"
    assert early.event.details == {"early": True}


def test_late_check_in_is_flagged(db_session, employee, register, opening_hours) -> None:
    opening_hours()

    outcome = _service(_at(9, 15)).check_in_out(db_session, employee, _payload(register))

    assert db_session.get(AttendanceEvent, outcome.event.id).details == {"late": True}


def test_attendance_after_closing_time_is_rejected(db_session, employee, register, opening_hours) -> None:
    opening_hours(end=time(17, 0))

    with pytest.raises(ValidationError) as exc:
        _service(_at(17, 1)).check_in_out(db_session, employee, _payload(register))

    assert exc.value.code == "srv_outside_working_hours"


@pytest.mark.parametrize("weekday, is_available", [(WEEKDAY, False), (OTHER_WEEKDAY, True)])
def test_register_closed_today(db_session, employee, register, opening_hours, weekday, is_available) -> None:
    opening_hours(weekday, is_available=is_available)

    with pytest.raises(ValidationError) as exc:
        _service(_at(10)).check_in_out(db_session, employee, _payload(register))

    assert exc.value.code == "srv_workplace_closed_today"


@pytest.mark.parametrize("weekday, is_available", [(WEEKDAY, False), (OTHER_WEEKDAY, True)])
def test_employee_not_working_today(db_session, employee, register, opening_hours, weekday, is_available) -> None:
    opening_hours()
    db_session.add(
        EmployeeWorkday(employee_id=employee.id, register_id=register.id, weekday=weekday, is_available=is_available)
    )
    db_session.commit()

    with pytest.raises(ValidationError) as exc:
        _service(_at(10)).check_in_out(db_session, employee, _payload(register))

    assert exc.value.code == "srv_you_not_working_today"
    assert db_session.query(AttendanceEvent).count() == 0


def test_workplaces_follow_the_weekly_schedule(db_session, employee, register, opening_hours) -> None:
    opening_hours(start=time(9, 0), end=time(18, 30))
    service = WorkplaceService(clock=lambda: _at(10))

    [workplace] = service.today_workplaces(db_session, employee)
    assert workplace["workingHours"] == {
        "day": WEEKDAYS[WEEKDAY],
        "isAvailable": True,
        "start": "09:00",
        "end": "18:30",
    }

    db_session.add(
        EmployeeWorkday(employee_id=employee.id, register_id=register.id, weekday=OTHER_WEEKDAY, is_available=True)
    )
    db_session.commit()
    assert service.today_workplaces(db_session, employee) == []
