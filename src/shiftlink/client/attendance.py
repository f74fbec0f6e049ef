"""Mutating attendance actions sent as signed requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shiftlink.client.directory import SessionDirectory
from shiftlink.schemas.attendance import (
    AttendancePayload,
    BreakPayload,
    CancelPairingPayload,
    InterruptionAction,
    LocalDeviceConfirmationPayload,
    PausePayload,
    SpecificBreakPayload,
)
from shiftlink.schemas.envelope import SignedPayload


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an accepted action.

    A non-empty ``local_devices`` means the event was recorded without a
    terminal and the user should pick one via ``confirm_local_device``.
    """

    code: Any
    event_id: str | None = None
    local_devices: list[dict[str, Any]] = field(default_factory=list)

    @property
    def needs_local_device(self) -> bool:
        return bool(self.local_devices)


class AttendanceClient:
    """Signs and sends attendance actions to one of the directory's domains."""

    def __init__(self, directory: SessionDirectory) -> None:
        self.directory = directory

    async def _send(self, domain: str, path: str, payload: SignedPayload) -> ActionResult:
        # Signing first: an unpaired domain fails before any network call.
        body = self.directory.build_signed_body(domain, payload)
        client = self.directory.client_for(domain)
        identity = self.directory.get_identity(domain)
        response = await client.post(path, json_data=body, employee_id=identity.employee_id)
        return ActionResult(
            code=response.get("msg"),
            event_id=response.get("eventId"),
            local_devices=list(response.get("localDevices") or []),
        )

    async def check_in_out(
        self,
        domain: str,
        *,
        register_id: str,
        latitude: float,
        longitude: float,
        local_device_id: str | None = None,
    ) -> ActionResult:
        payload = AttendancePayload(
            register_id=register_id,
            latitude=latitude,
            longitude=longitude,
            local_device_id=local_device_id,
        )
        return await self._send(domain, "/api/attendance", payload)

    async def apply_break(
        self,
        domain: str,
        *,
        action: InterruptionAction,
        register_id: str,
        latitude: float,
        longitude: float,
        break_id: str | None = None,
        name: str | None = None,
        local_device_id: str | None = None,
    ) -> ActionResult:
        payload = BreakPayload(
            action=action,
            register_id=register_id,
            latitude=latitude,
            longitude=longitude,
            break_id=break_id,
            name=name,
            local_device_id=local_device_id,
        )
        return await self._send(domain, "/api/break", payload)

    async def apply_pause(
        self,
        domain: str,
        *,
        action: InterruptionAction,
        register_id: str,
        latitude: float,
        longitude: float,
        name: str | None = None,
        local_device_id: str | None = None,
    ) -> ActionResult:
        payload = PausePayload(
            action=action,
            register_id=register_id,
            latitude=latitude,
            longitude=longitude,
            name=name,
            local_device_id=local_device_id,
        )
        return await self._send(domain, "/api/pause", payload)

    async def apply_specific_break(
        self,
        domain: str,
        *,
        action: InterruptionAction,
        register_id: str,
        latitude: float,
        longitude: float,
        break_key: str,
        reason: str | None = None,
        local_device_id: str | None = None,
    ) -> ActionResult:
        payload = SpecificBreakPayload(
            action=action,
            register_id=register_id,
            latitude=latitude,
            longitude=longitude,
            break_key=break_key,
            reason=reason,
            local_device_id=local_device_id,
        )
        return await self._send(domain, "/api/specific-break", payload)

    async def confirm_local_device(self, domain: str, *, event_id: str, local_device_id: str) -> ActionResult:
        payload = LocalDeviceConfirmationPayload(event_id=event_id, local_device_id=local_device_id)
        return await self._send(domain, f"/api/attendance/{event_id}/local-device", payload)

    async def cancel_pairing(self, domain: str, *, retail_id: str) -> ActionResult:
        """Revoke this device's identity on the server, then forget it locally."""
        payload = CancelPairingPayload(retail_id=retail_id)
        result = await self._send(domain, "/api/employee/cancel-pairing", payload)
        await self.directory.remove_domain(domain)
        return result
