"""Signed envelope wire schemas.

Mutating requests are flat JSON bodies ``{...payload, "token": {...}}``. The
payload that was signed is always rebuilt as its own typed model from an
explicit field list, never by removing transport keys from the body.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NONCE_HEX_LENGTH = 32  # 128 bits

P = TypeVar("P", bound="SignedPayload")


class SignedToken(BaseModel):
    """Replay metadata and signature sent alongside a signed payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    employee_id: str = Field(..., min_length=1, description="Identity the request claims")
    timestamp: int = Field(..., ge=0, description="Unix time in milliseconds at signing")
    nonce: str = Field(
        ...,
        pattern=rf"^[0-9a-f]{{{NONCE_HEX_LENGTH}}}$",
        description="Hex-encoded 128-bit random nonce",
    )
    signature: str = Field(..., min_length=1, description="URL-safe base64 Ed25519 signature")


class SignedPayload(BaseModel):
    """Base class for every payload covered by a device signature."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def canonical_fields(self) -> dict[str, Any]:
        """Return the JSON-ready mapping that enters the canonical form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def payload_of(request: BaseModel, payload_type: type[P]) -> P:
    """Construct ``payload_type`` from exactly its own fields of ``request``."""
    return payload_type(**{name: getattr(request, name) for name in payload_type.model_fields})
