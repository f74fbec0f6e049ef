"""Attendance rules: check-in/out toggling, shift interruptions and terminal confirmation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlink.core.errors import Conflict, NotFound, ValidationError
from shiftlink.db.time import start_of_day, utcnow
from shiftlink.models import (
    AttendanceEvent,
    AttendanceEventType,
    Employee,
    LocalDeviceConfirmation,
    Register,
)
from shiftlink.schemas.attendance import (
    AttendancePayload,
    BreakPayload,
    InterruptionPayload,
    PausePayload,
    SpecificBreakPayload,
)
from shiftlink.services.local_devices import LocalDeviceResolver
from shiftlink.services.schedule import WorkScheduleService
from shiftlink.utils.geo import haversine_distance

logger = logging.getLogger(__name__)

_SHIFT_TYPES = (AttendanceEventType.CHECK_IN.value, AttendanceEventType.CHECK_OUT.value)

# Wire names used in result and error codes for each interruption kind.
_INTERRUPTION_CODES: dict[AttendanceEventType, str] = {
    AttendanceEventType.BREAK: "break",
    AttendanceEventType.PAUSE: "pause",
    AttendanceEventType.SPECIFIC_BREAK: "specific_break",
}

# A specific break blocks other interruptions as a break.
_PENDING_CODES: dict[AttendanceEventType, str] = {
    AttendanceEventType.BREAK: "break",
    AttendanceEventType.PAUSE: "pause",
    AttendanceEventType.SPECIFIC_BREAK: "break",
}


@dataclass
class ActionOutcome:
    """Result of an accepted attendance write."""

    code: str
    event: AttendanceEvent
    local_devices: list[dict[str, Any]] | None = None


@dataclass
class _Day:
    """An employee's events at one register since midnight."""

    events: list[AttendanceEvent]

    def last_shift_event(self) -> AttendanceEvent | None:
        return next((e for e in reversed(self.events) if e.type in _SHIFT_TYPES), None)

    @property
    def checked_out(self) -> bool:
        return any(e.type == AttendanceEventType.CHECK_OUT.value for e in self.events)

    @property
    def checked_in(self) -> bool:
        last = self.last_shift_event()
        return last is not None and last.type == AttendanceEventType.CHECK_IN.value

    def pending(self, kind: AttendanceEventType) -> bool:
        last = next((e for e in reversed(self.events) if e.type == kind.value), None)
        return last is not None and last.action == "start"

    def pending_kinds(self) -> list[AttendanceEventType]:
        return [kind for kind in _INTERRUPTION_CODES if self.pending(kind)]


class AttendanceService:
    """Validates and records attendance actions for a verified employee.

    Writes are never blocked on terminal disambiguation: when the register's
    local device cannot be determined the event is stored without one and the
    candidates are returned to the caller.
    """

    def __init__(
        self,
        resolver: LocalDeviceResolver | None = None,
        *,
        schedule: WorkScheduleService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.resolver = resolver or LocalDeviceResolver()
        self.schedule = schedule or WorkScheduleService()
        self._clock = clock

    def _register_for(self, db: Session, employee: Employee, payload: AttendancePayload) -> tuple[Register, float]:
        register = db.get(Register, payload.register_id)
        if register is None:
            raise NotFound(f"Register {payload.register_id} not found", code="srv_register_not_found")
        if not employee.works_at(register.id):
            raise ValidationError(
                f"Employee {employee.id} is not assigned to register {register.id}",
                code="srv_employee_not_employed",
            )
        if not register.is_available:
            raise ValidationError(f"Register {register.id} is unavailable", code="srv_register_unavailable")

        distance = haversine_distance(
            register.latitude,
            register.longitude,
            payload.latitude,
            payload.longitude,
        )
        if distance > register.allowed_radius_m:
            logger.info(
                "Employee %s is %.0f m from register %s (allowed %.0f m)",
                employee.id,
                distance,
                register.id,
                register.allowed_radius_m,
            )
            raise ValidationError(
                f"Outside the allowed radius of register {register.id}",
                code="srv_outside_allowed_radius",
            )
        return register, distance

    def _today(self, db: Session, employee_id: str, register_id: str, now: datetime) -> _Day:
        stmt = (
            select(AttendanceEvent)
            .where(
                AttendanceEvent.employee_id == employee_id,
                AttendanceEvent.register_id == register_id,
                AttendanceEvent.timestamp >= start_of_day(now),
            )
            .order_by(AttendanceEvent.timestamp, AttendanceEvent.id)
        )
        return _Day(list(db.scalars(stmt)))

    def _record(
        self,
        db: Session,
        *,
        employee: Employee,
        register: Register,
        payload: AttendancePayload,
        event_type: AttendanceEventType,
        distance: float,
        now: datetime,
        details: dict[str, Any] | None = None,
    ) -> tuple[AttendanceEvent, list[dict[str, Any]] | None]:
        resolution = self.resolver.resolve(db, register.id, payload.local_device_id)
        event = AttendanceEvent(
            type=event_type.value,
            employee_id=employee.id,
            register_id=register.id,
            retail_id=register.retail_id,
            timestamp=now,
            latitude=payload.latitude,
            longitude=payload.longitude,
            distance_m=round(distance, 1),
            local_device_id=resolution.local_device_id,
            details=details or {},
        )
        db.add(event)
        db.commit()

        local_devices = None
        if resolution.is_ambiguous and resolution.candidates:
            local_devices = resolution.candidate_dicts()
            logger.info(
                "Recorded %s %s without a local device; %d candidates at register %s",
                event_type.value,
                event.id,
                len(local_devices),
                register.id,
            )
        return event, local_devices

    def check_in_out(self, db: Session, employee: Employee, payload: AttendancePayload) -> ActionOutcome:
        """Write a check-in, or a check-out when the employee is already checked in."""
        register, distance = self._register_for(db, employee, payload)
        now = self._clock()
        window = self.schedule.open_window(db, employee.id, register.id, now)
        day = self._today(db, employee.id, register.id, now)

        if day.checked_out:
            raise ValidationError("Already checked out today", code="srv_already_checked_out")

        if day.checked_in:
            pending = day.pending_kinds()
            if pending:
                raise ValidationError(
                    f"A {pending[0].value} is still running",
                    code=f"srv_some_{_PENDING_CODES[pending[0]]}_is_pending",
                )
            event_type, code = AttendanceEventType.CHECK_OUT, "srv_checked_out"
            details = {"early": True} if window.is_early() else {}
        else:
            event_type, code = AttendanceEventType.CHECK_IN, "srv_checked_in"
            details = {"late": True} if window.is_late() else {}

        event, local_devices = self._record(
            db,
            employee=employee,
            register=register,
            payload=payload,
            event_type=event_type,
            distance=distance,
            now=now,
            details=details,
        )
        return ActionOutcome(code=code, event=event, local_devices=local_devices)

    def _interrupt(
        self,
        db: Session,
        employee: Employee,
        payload: InterruptionPayload,
        kind: AttendanceEventType,
        details: dict[str, Any],
    ) -> ActionOutcome:
        register, distance = self._register_for(db, employee, payload)
        now = self._clock()
        day = self._today(db, employee.id, register.id, now)
        name = _INTERRUPTION_CODES[kind]

        if not day.checked_in:
            raise ValidationError("Not checked in", code="srv_not_checked_in")
        if payload.action == "start":
            running = day.pending_kinds()
            if running:
                raise ValidationError(
                    f"A {running[0].value} is already running",
                    code=f"srv_some_{_PENDING_CODES[running[0]]}_is_pending",
                )
        elif not day.pending(kind):
            raise ValidationError(f"No {kind.value} is running", code=f"srv_no_{name}_is_pending")

        event, local_devices = self._record(
            db,
            employee=employee,
            register=register,
            payload=payload,
            event_type=kind,
            distance=distance,
            now=now,
            details={"action": payload.action, **details},
        )
        suffix = "started" if payload.action == "start" else "ended"
        return ActionOutcome(code=f"srv_{name}_{suffix}", event=event, local_devices=local_devices)

    def apply_break(self, db: Session, employee: Employee, payload: BreakPayload) -> ActionOutcome:
        details = {"breakId": payload.break_id, "name": payload.name}
        return self._interrupt(db, employee, payload, AttendanceEventType.BREAK, _compact(details))

    def apply_pause(self, db: Session, employee: Employee, payload: PausePayload) -> ActionOutcome:
        return self._interrupt(db, employee, payload, AttendanceEventType.PAUSE, _compact({"name": payload.name}))

    def apply_specific_break(
        self,
        db: Session,
        employee: Employee,
        payload: SpecificBreakPayload,
    ) -> ActionOutcome:
        details = {"breakKey": payload.break_key, "reason": payload.reason}
        return self._interrupt(db, employee, payload, AttendanceEventType.SPECIFIC_BREAK, _compact(details))

    def confirm_local_device(
        self,
        db: Session,
        employee: Employee,
        *,
        event_id: str,
        local_device_id: str,
    ) -> LocalDeviceConfirmation:
        """Record which terminal an ambiguous event came from, leaving the event untouched."""
        event = db.get(AttendanceEvent, event_id)
        if event is None or event.employee_id != employee.id:
            raise NotFound(f"Attendance event {event_id} not found", code="srv_attendance_not_found")
        if event.local_device_id is not None:
            raise Conflict("Event already has a local device", code="srv_local_device_already_set")
        existing = db.scalar(
            select(LocalDeviceConfirmation).where(LocalDeviceConfirmation.event_id == event.id)
        )
        if existing is not None:
            raise Conflict("Event already has a local device", code="srv_local_device_already_set")

        resolved = self.resolver.require(db, event.register_id, local_device_id)
        confirmation = LocalDeviceConfirmation(
            event_id=event.id,
            local_device_id=resolved,
            confirmed_at=self._clock(),
        )
        db.add(confirmation)
        db.commit()
        logger.info("Confirmed local device %s for event %s", resolved, event.id)
        return confirmation


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def get_attendance_service() -> AttendanceService:
    return AttendanceService()
