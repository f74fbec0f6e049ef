"""Attendance payloads and the signed requests that carry them."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from shiftlink.schemas.common import CamelModel
from shiftlink.schemas.envelope import SignedPayload, SignedToken, payload_of

InterruptionAction = Literal["start", "end"]


class AttendancePayload(SignedPayload):
    """Check-in/out at a register."""

    register_id: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    local_device_id: str | None = Field(
        None,
        description="Terminal the employee used, when the device could tell",
    )


class InterruptionPayload(AttendancePayload):
    action: InterruptionAction


class BreakPayload(InterruptionPayload):
    break_id: str | None = None
    name: str | None = Field(None, max_length=100)


class PausePayload(InterruptionPayload):
    name: str | None = Field(None, max_length=100)


class SpecificBreakPayload(InterruptionPayload):
    break_key: str = Field(..., min_length=1, max_length=64)
    reason: str | None = Field(None, max_length=500)


class CancelPairingPayload(SignedPayload):
    retail_id: str = Field(..., min_length=1)


class LocalDeviceConfirmationPayload(SignedPayload):
    event_id: str = Field(..., min_length=1)
    local_device_id: str = Field(..., min_length=1)


class AttendanceRequest(AttendancePayload):
    token: SignedToken

    def signed_payload(self) -> AttendancePayload:
        return payload_of(self, AttendancePayload)


class BreakRequest(BreakPayload):
    token: SignedToken

    def signed_payload(self) -> BreakPayload:
        return payload_of(self, BreakPayload)


class PauseRequest(PausePayload):
    token: SignedToken

    def signed_payload(self) -> PausePayload:
        return payload_of(self, PausePayload)


class SpecificBreakRequest(SpecificBreakPayload):
    token: SignedToken

    def signed_payload(self) -> SpecificBreakPayload:
        return payload_of(self, SpecificBreakPayload)


class CancelPairingRequest(CancelPairingPayload):
    token: SignedToken

    def signed_payload(self) -> CancelPairingPayload:
        return payload_of(self, CancelPairingPayload)


class LocalDeviceConfirmationRequest(LocalDeviceConfirmationPayload):
    token: SignedToken

    def signed_payload(self) -> LocalDeviceConfirmationPayload:
        return payload_of(self, LocalDeviceConfirmationPayload)


class WorkplacesRequest(CamelModel):
    """Read-only lookup of today's eligible registers."""

    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
