# src/shiftlink/main.py
"""Main entry point for a ShiftLink domain server."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from shiftlink.api import (
    attendance_router,
    employee_router,
    intent_router,
    local_device_router,
    mod_router,
    registration_router,
    system_router,
    workplaces_router,
)
from shiftlink.core.errors import AmbiguousLocalDevice, AttendanceError, ValidationError
from shiftlink.core.settings import settings

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="ShiftLink API",
    description="Signed attendance tracking for paired mobile devices",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(registration_router, prefix="/api")
app.include_router(attendance_router, prefix="/api")
app.include_router(workplaces_router, prefix="/api")
app.include_router(employee_router, prefix="/api")
app.include_router(local_device_router, prefix="/api")
app.include_router(mod_router, prefix="/api")
app.include_router(system_router, prefix="/api")
app.include_router(intent_router)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    """Render domain errors as ``{"success": false, "msg": code}``."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected with %s: %s", request.method, request.url.path, exc.code, exc)

    body: dict[str, Any] = {"success": False, "msg": exc.code}
    if isinstance(exc, AmbiguousLocalDevice):
        body["localDevices"] = exc.candidates
    if isinstance(exc, ValidationError) and exc.field:
        body["fields"] = [{"field": exc.field, "code": exc.code}]
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "code": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"success": False, "msg": ValidationError.code, "fields": fields},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("shiftlink.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
