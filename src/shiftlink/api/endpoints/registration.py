# src/shiftlink/api/endpoints/registration.py
"""Device pairing endpoints."""

from fastapi import APIRouter

from shiftlink.api.dependencies import AppIdDep, RegistrationServiceDep, SessionDep
from shiftlink.schemas.common import ApiResponse, ok
from shiftlink.schemas.registration import RegistrationSubmit

router = APIRouter(prefix="/registration", tags=["registration"])


@router.get("/{token_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def get_registration(
    token_id: str,
    db: SessionDep,
    service: RegistrationServiceDep,
) -> ApiResponse:
    """Return the employee draft and retail behind a pairing token."""
    return ok(service.describe(db, token_id))


@router.post("", response_model=ApiResponse, response_model_exclude_none=True)
async def submit_registration(
    body: RegistrationSubmit,
    db: SessionDep,
    app_id: AppIdDep,
    service: RegistrationServiceDep,
) -> ApiResponse:
    """Bind the device's public key to the token's employee.

    A token can be consumed once; re-pairing the same employee replaces the
    previously bound key in the same transaction.
    """
    return ok(service.consume(db, body.token_id, device_id=app_id, form=body.form))
