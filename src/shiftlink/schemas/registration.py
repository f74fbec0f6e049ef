"""Pairing and registration-token schemas."""

from __future__ import annotations

from pydantic import Field, field_validator

from shiftlink.schemas.common import CamelModel


class RegistrationForm(CamelModel):
    """Employee details confirmed on the device together with its public key."""

    public_key: str = Field(..., description="URL-safe base64 Ed25519 public key (32 bytes)")
    name: str = Field(..., min_length=1, max_length=200)
    email: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name must not be blank")
        return stripped


class RegistrationSubmit(CamelModel):
    """Body of ``POST /api/registration``."""

    token_id: str = Field(..., min_length=1)
    form: RegistrationForm


class RegistrationIssueRequest(CamelModel):
    """Admin request for a new pairing token."""

    employee_id: str = Field(..., min_length=1)


class LocalDeviceRegistration(CamelModel):
    """A terminal announcing itself at a register."""

    device_id: str = Field(..., min_length=1, max_length=128)
    register_id: str = Field(..., min_length=1)
    label: str | None = Field(None, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocalDeviceUnregistration(CamelModel):
    device_id: str = Field(..., min_length=1)
    register_id: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
