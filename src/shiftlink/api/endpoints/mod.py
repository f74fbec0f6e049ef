# src/shiftlink/api/endpoints/mod.py
"""Administrator endpoints, authenticated with a retail-scoped bearer JWT."""

from __future__ import annotations

from fastapi import APIRouter, Request
from sqlalchemy.orm import Session

from shiftlink.api.dependencies import (
    CurrentRetailDep,
    RegistrationServiceDep,
    ResolverDep,
    SessionDep,
)
from shiftlink.core.errors import NotFound
from shiftlink.core.settings import settings
from shiftlink.models import Employee, Register
from shiftlink.schemas.common import ApiResponse, ok
from shiftlink.schemas.registration import RegistrationIssueRequest

router = APIRouter(prefix="/mod", tags=["mod"])


def _public_domain(request: Request) -> str:
    return settings.public_base_url or str(request.base_url).rstrip("/")


@router.post("/registration", response_model=ApiResponse, response_model_exclude_none=True)
async def issue_registration(
    body: RegistrationIssueRequest,
    request: Request,
    db: SessionDep,
    retail: CurrentRetailDep,
    service: RegistrationServiceDep,
) -> ApiResponse:
    """Issue a pairing token and return its deep link and intent URL."""
    employee = db.get(Employee, body.employee_id)
    if employee is None or employee.retail_id != retail.id:
        raise NotFound("Employee not found", code="srv_employee_not_found")
    return ok(service.issue_token(db, employee, domain=_public_domain(request)))


def _register_of(db: Session, register_id: str, retail_id: str) -> Register:
    register = db.get(Register, register_id)
    if register is None or register.retail_id != retail_id:
        raise NotFound(f"Register {register_id} not found", code="srv_register_not_found")
    return register


@router.get(
    "/registers/{register_id}/local-devices",
    response_model=ApiResponse,
    response_model_exclude_none=True,
)
async def list_local_devices(
    register_id: str,
    db: SessionDep,
    retail: CurrentRetailDep,
    resolver: ResolverDep,
) -> ApiResponse:
    """List the register's terminals with their distance from the register."""
    register = _register_of(db, register_id, retail.id)
    return ok(resolver.list_for_register(db, register.id))


@router.delete("/local-devices/{local_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def delete_local_device(
    local_id: str,
    db: SessionDep,
    retail: CurrentRetailDep,
    resolver: ResolverDep,
) -> ApiResponse:
    resolver.delete_device(db, local_id, retail_id=retail.id)
    return ok("srv_local_device_deleted")
