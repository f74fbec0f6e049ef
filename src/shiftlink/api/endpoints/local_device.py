# src/shiftlink/api/endpoints/local_device.py
"""Endpoints terminals use to attach themselves to a register."""

from fastapi import APIRouter, status

from shiftlink.api.dependencies import ResolverDep, SessionDep
from shiftlink.schemas.common import ApiResponse, ok
from shiftlink.schemas.registration import LocalDeviceRegistration, LocalDeviceUnregistration
from shiftlink.services.local_devices import describe_device

router = APIRouter(prefix="/local-device", tags=["local-device"])


@router.post(
    "",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register_local_device(
    body: LocalDeviceRegistration,
    db: SessionDep,
    resolver: ResolverDep,
) -> ApiResponse:
    device = resolver.register_device(
        db,
        device_id=body.device_id,
        register_id=body.register_id,
        label=body.label,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    return ok(describe_device(device))


@router.delete("", response_model=ApiResponse, response_model_exclude_none=True)
async def unregister_local_device(
    body: LocalDeviceUnregistration,
    db: SessionDep,
    resolver: ResolverDep,
) -> ApiResponse:
    """Detach a terminal; attendance history keeps referencing it."""
    resolver.unregister_device(
        db,
        device_id=body.device_id,
        register_id=body.register_id,
        local_id=body.id,
    )
    return ok("srv_local_device_deleted")
