# src/shiftlink/api/endpoints/employee.py
"""Employee self-service endpoints."""

from fastapi import APIRouter

from shiftlink.api.dependencies import AppIdDep, RegistrationServiceDep, SessionDep, VerifierDep
from shiftlink.schemas.attendance import CancelPairingRequest
from shiftlink.schemas.common import ApiResponse, ok

router = APIRouter(prefix="/employee", tags=["employee"])


@router.post("/cancel-pairing", response_model=ApiResponse, response_model_exclude_none=True)
async def cancel_pairing(
    body: CancelPairingRequest,
    db: SessionDep,
    app_id: AppIdDep,
    verifier: VerifierDep,
    service: RegistrationServiceDep,
) -> ApiResponse:
    """Revoke the calling device's identity for this domain."""
    payload = body.signed_payload()
    employee = verifier.verify(db, body.token, payload, device_id=app_id)
    service.cancel_pairing(db, employee, retail_id=payload.retail_id)
    return ok("srv_pairing_cancelled")
