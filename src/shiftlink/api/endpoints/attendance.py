# src/shiftlink/api/endpoints/attendance.py
"""Signed attendance endpoints: check-in/out, shift interruptions and terminal confirmation."""

from fastapi import APIRouter

from shiftlink.api.dependencies import AppIdDep, AttendanceServiceDep, SessionDep, VerifierDep
from shiftlink.core.errors import ValidationError
from shiftlink.schemas.attendance import (
    AttendanceRequest,
    BreakRequest,
    LocalDeviceConfirmationRequest,
    PauseRequest,
    SpecificBreakRequest,
)
from shiftlink.schemas.common import ApiResponse, ok
from shiftlink.services.attendance import ActionOutcome

router = APIRouter(tags=["attendance"])


def _respond(outcome: ActionOutcome) -> ApiResponse:
    return ok(outcome.code, event_id=outcome.event.id, local_devices=outcome.local_devices)


@router.post("/attendance", response_model=ApiResponse, response_model_exclude_none=True)
async def check_in_out(
    body: AttendanceRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: AttendanceServiceDep,
) -> ApiResponse:
    """Check in, or check out when already checked in at the register today.

    The event is written even when the register's terminal is ambiguous; the
    response then lists the candidate ``localDevices``.
    """
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    return _respond(service.check_in_out(db, employee, payload))


@router.post("/break", response_model=ApiResponse, response_model_exclude_none=True)
async def apply_break(
    body: BreakRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: AttendanceServiceDep,
) -> ApiResponse:
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    return _respond(service.apply_break(db, employee, payload))


@router.post("/pause", response_model=ApiResponse, response_model_exclude_none=True)
async def apply_pause(
    body: PauseRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: AttendanceServiceDep,
) -> ApiResponse:
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    return _respond(service.apply_pause(db, employee, payload))


@router.post("/specific-break", response_model=ApiResponse, response_model_exclude_none=True)
async def apply_specific_break(
    body: SpecificBreakRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: AttendanceServiceDep,
) -> ApiResponse:
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    return _respond(service.apply_specific_break(db, employee, payload))


@router.post(
    "/attendance/{event_id}/local-device",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def confirm_local_device(
    event_id: str,
    body: LocalDeviceConfirmationRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: AttendanceServiceDep,
) -> ApiResponse:
    """Select the terminal of an event that was written without one."""
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    if payload.event_id != event_id:
        raise ValidationError("Event id does not match the signed payload", field="eventId")
    confirmation = service.confirm_local_device(
        db,
        employee,
        event_id=event_id,
        local_device_id=payload.local_device_id,
    )
    return ok(
        {"code": "srv_local_device_confirmed", "localDeviceId": confirmation.local_device_id},
        event_id=event_id,
    )
