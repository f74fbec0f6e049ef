"""System endpoints for ShiftLink domains."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from shiftlink.api.dependencies import SessionDep
from shiftlink.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of the protocol configuration.

    Excludes secrets and connection strings; devices may use it to check the
    replay window before signing.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "protocol": {
            "signature": "ed25519",
            "replay_window_seconds": settings.replay_window_seconds,
            "key_rotation_grace_seconds": settings.key_rotation_grace_seconds,
            "app_scheme": settings.app_scheme,
        },
        "registration": {
            "ttl_minutes": settings.registration_ttl_minutes,
        },
    }


@router.get("/health")
async def health(db: SessionDep) -> dict[str, str]:
    """Report whether the database answers."""
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
