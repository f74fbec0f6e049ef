"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel):
    """Envelope every endpoint answers with: ``{success, msg}``."""

    success: bool = Field(..., description="False when msg is an error code")
    msg: Any = Field(..., description="Result payload or error code")
    event_id: str | None = Field(None, description="Attendance event written by the request")
    local_devices: list[dict[str, Any]] | None = Field(
        None,
        description="Candidate local devices when the physical origin is ambiguous",
    )


def ok(
    msg: Any,
    *,
    event_id: str | None = None,
    local_devices: list[dict[str, Any]] | None = None,
) -> ApiResponse:
    return ApiResponse(success=True, msg=msg, event_id=event_id, local_devices=local_devices)
