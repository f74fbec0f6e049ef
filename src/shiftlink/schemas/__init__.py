"""Pydantic schemas for the ShiftLink wire protocol."""

from .attendance import (
    AttendancePayload,
    AttendanceRequest,
    BreakPayload,
    BreakRequest,
    CancelPairingPayload,
    CancelPairingRequest,
    LocalDeviceConfirmationPayload,
    LocalDeviceConfirmationRequest,
    PausePayload,
    PauseRequest,
    SpecificBreakPayload,
    SpecificBreakRequest,
    WorkplacesRequest,
)
from .common import ApiResponse
from .envelope import SignedPayload, SignedToken
from .registration import RegistrationForm, RegistrationSubmit

__all__ = [
    "ApiResponse",
    "AttendancePayload", "AttendanceRequest",
    "BreakPayload", "BreakRequest",
    "CancelPairingPayload", "CancelPairingRequest",
    "LocalDeviceConfirmationPayload", "LocalDeviceConfirmationRequest",
    "PausePayload", "PauseRequest",
    "SpecificBreakPayload", "SpecificBreakRequest",
    "WorkplacesRequest",
    "SignedPayload", "SignedToken",
    "RegistrationForm", "RegistrationSubmit",
]
