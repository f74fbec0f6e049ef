"""Read-only views of an employee's workplaces and attendance history."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlink.core.settings import settings
from shiftlink.db.time import as_utc, start_of_day, utcnow
from shiftlink.models import (
    AttendanceEvent,
    AttendanceEventType,
    Employee,
    LocalDeviceConfirmation,
    Register,
)
from shiftlink.services.schedule import WorkScheduleService
from shiftlink.utils.geo import haversine_distance


def _register_dict(register: Register) -> dict[str, Any]:
    return {
        "id": register.id,
        "name": register.name,
        "address": register.address,
        "latitude": register.latitude,
        "longitude": register.longitude,
        "allowedRadius": register.allowed_radius_m,
    }


class WorkplaceService:
    def __init__(
        self,
        *,
        schedule: WorkScheduleService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.schedule = schedule or WorkScheduleService()
        self._clock = clock

    def today_workplaces(
        self,
        db: Session,
        employee: Employee,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> list[dict[str, Any]]:
        """Return the registers the employee works at today with today's shift times.

        Sorted by distance when a location is given, otherwise by name.
        """
        now = self._clock()
        weekday = as_utc(now).weekday()
        registers = [
            register
            for register in employee.registers
            if register.is_available and self.schedule.works_on(db, employee.id, register.id, weekday)
        ]
        if not registers:
            return []

        stmt = (
            select(AttendanceEvent)
            .where(
                AttendanceEvent.employee_id == employee.id,
                AttendanceEvent.register_id.in_([register.id for register in registers]),
                AttendanceEvent.timestamp >= start_of_day(now),
            )
            .order_by(AttendanceEvent.timestamp, AttendanceEvent.id)
        )
        check_in: dict[str, str] = {}
        check_out: dict[str, str] = {}
        for event in db.scalars(stmt):
            stamp = as_utc(event.timestamp).isoformat()
            if event.type == AttendanceEventType.CHECK_IN.value:
                check_in.setdefault(event.register_id, stamp)
            elif event.type == AttendanceEventType.CHECK_OUT.value:
                check_out[event.register_id] = stamp

        has_location = latitude is not None and longitude is not None
        workplaces: list[dict[str, Any]] = []
        for register in registers:
            hours = self.schedule.hours_for(db, register.id, weekday)
            distance = None
            if has_location:
                distance = round(
                    haversine_distance(register.latitude, register.longitude, latitude, longitude),  # type: ignore[arg-type]
                    1,
                )
            workplaces.append(
                {
                    **_register_dict(register),
                    "retail": {"id": employee.retail.id, "name": employee.retail.name},
                    "checkIn": check_in.get(register.id),
                    "checkOut": check_out.get(register.id),
                    "distance": distance,
                    "workingHours": hours.to_dict() if hours is not None else None,
                }
            )

        if has_location:
            workplaces.sort(key=lambda item: (item["distance"], item["name"]))
        else:
            workplaces.sort(key=lambda item: item["name"])
        return workplaces

    def my_companies(self, db: Session, employee: Employee) -> list[dict[str, Any]]:
        """Return the employee's retail together with the registers assigned to them."""
        retail = employee.retail
        return [
            {
                "id": retail.id,
                "name": retail.name,
                "tin": retail.tin,
                "employeeId": employee.id,
                "position": employee.position,
                "registers": [_register_dict(register) for register in employee.registers],
            }
        ]

    def attendances(
        self,
        db: Session,
        employee: Employee,
        *,
        retail_id: str | None = None,
        limit: int | None = None,
        skip: int = 0,
    ) -> dict[str, Any]:
        """Return a newest-first page of the employee's attendance history."""
        page_size = max(1, min(limit or settings.attendances_page_limit, settings.attendances_max_limit))
        stmt = select(AttendanceEvent).where(AttendanceEvent.employee_id == employee.id)
        if retail_id is not None:
            stmt = stmt.where(AttendanceEvent.retail_id == retail_id)
        stmt = (
            stmt.order_by(AttendanceEvent.timestamp.desc(), AttendanceEvent.id.desc())
            .offset(max(0, skip))
            .limit(page_size + 1)
        )
        events = list(db.scalars(stmt))
        has_more = len(events) > page_size
        events = events[:page_size]

        confirmed: dict[str, str] = {}
        register_ids = {event.register_id for event in events}
        if events:
            rows = db.scalars(
                select(LocalDeviceConfirmation).where(
                    LocalDeviceConfirmation.event_id.in_([event.id for event in events])
                )
            )
            confirmed = {row.event_id: row.local_device_id for row in rows}

        registers = (
            list(db.scalars(select(Register).where(Register.id.in_(register_ids)).order_by(Register.name)))
            if register_ids
            else []
        )

        attendances = []
        for event in events:
            item = event.to_dict()
            if item["localDeviceId"] is None:
                item["localDeviceId"] = confirmed.get(event.id)
            attendances.append(item)
        return {
            "attendances": attendances,
            "registers": [_register_dict(register) for register in registers],
            "hasMore": has_more,
        }


def get_workplace_service() -> WorkplaceService:
    return WorkplaceService()
