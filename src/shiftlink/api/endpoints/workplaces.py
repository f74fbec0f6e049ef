# src/shiftlink/api/endpoints/workplaces.py
"""Read-only endpoints identified by the App-Id and Employee-Id headers."""

from typing import Annotated

from fastapi import APIRouter, Query

from shiftlink.api.dependencies import DeviceEmployeeDep, SessionDep, WorkplaceServiceDep
from shiftlink.schemas.attendance import WorkplacesRequest
from shiftlink.schemas.common import ApiResponse, ok

router = APIRouter(tags=["workplaces"])

LimitQuery = Annotated[int | None, Query(ge=1)]
SkipQuery = Annotated[int, Query(ge=0)]


@router.post("/workplaces", response_model=ApiResponse, response_model_exclude_none=True)
async def today_workplaces(
    body: WorkplacesRequest,
    db: SessionDep,
    employee: DeviceEmployeeDep,
    service: WorkplaceServiceDep,
) -> ApiResponse:
    """Return today's eligible registers, nearest first when a location is sent."""
    return ok(
        service.today_workplaces(
            db,
            employee,
            latitude=body.latitude,
            longitude=body.longitude,
        )
    )


@router.get("/companies", response_model=ApiResponse, response_model_exclude_none=True)
async def my_companies(
    db: SessionDep,
    employee: DeviceEmployeeDep,
    service: WorkplaceServiceDep,
) -> ApiResponse:
    return ok(service.my_companies(db, employee))


@router.get("/attendances", response_model=ApiResponse, response_model_exclude_none=True)
async def attendances(
    db: SessionDep,
    employee: DeviceEmployeeDep,
    service: WorkplaceServiceDep,
    limit: LimitQuery = None,
    skip: SkipQuery = 0,
) -> ApiResponse:
    """Return a newest-first page of attendance history."""
    return ok(service.attendances(db, employee, limit=limit, skip=skip))


@router.get("/attendances/{retail_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def retail_attendances(
    retail_id: str,
    db: SessionDep,
    employee: DeviceEmployeeDep,
    service: WorkplaceServiceDep,
    limit: LimitQuery = None,
    skip: SkipQuery = 0,
) -> ApiResponse:
    return ok(service.attendances(db, employee, retail_id=retail_id, limit=limit, skip=skip))
