"""Resolution and lifecycle of register-scoped local devices."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftlink.core.errors import AmbiguousLocalDevice, Conflict, NotFound, ValidationError
from shiftlink.db.time import utcnow
from shiftlink.models import LocalDevice, Register
from shiftlink.utils.geo import haversine_distance

logger = logging.getLogger(__name__)


def describe_device(device: LocalDevice) -> dict[str, Any]:
    """Return the wire form of a candidate terminal."""
    return {"id": device.id, "label": device.label, "deviceId": device.device_id}


@dataclass
class Resolution:
    """Outcome of resolving the terminal behind an attendance write.

    ``local_device_id`` is None when the register has zero or several devices
    and the request did not name a valid one; ``candidates`` then lists them.
    """

    local_device_id: str | None
    candidates: list[LocalDevice] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return self.local_device_id is None

    def candidate_dicts(self) -> list[dict[str, Any]]:
        return [describe_device(device) for device in self.candidates]


class LocalDeviceResolver:
    """Decides which terminal at a register originated a request."""

    def devices_for(self, db: Session, register_id: str) -> list[LocalDevice]:
        stmt = (
            select(LocalDevice)
            .where(LocalDevice.register_id == register_id)
            .order_by(LocalDevice.created_at, LocalDevice.id)
        )
        return list(db.scalars(stmt))

    def resolve(self, db: Session, register_id: str, candidate_id: str | None = None) -> Resolution:
        """Resolve ``candidate_id`` against the devices of ``register_id``.

        A candidate that belongs to the register wins. Otherwise a register with
        exactly one device resolves to it, and anything else is reported as
        ambiguous without guessing. A resolved device has ``last_seen_at`` bumped.
        """
        devices = self.devices_for(db, register_id)
        chosen: LocalDevice | None = None
        if candidate_id is not None:
            chosen = next((device for device in devices if device.id == candidate_id), None)
            if chosen is None:
                logger.info(
                    "Ignoring local device %s which does not belong to register %s",
                    candidate_id,
                    register_id,
                )
        if chosen is None and len(devices) == 1:
            chosen = devices[0]

        if chosen is None:
            return Resolution(local_device_id=None, candidates=devices)

        chosen.last_seen_at = utcnow()
        return Resolution(local_device_id=chosen.id, candidates=[chosen])

    def require(self, db: Session, register_id: str, candidate_id: str | None = None) -> str:
        """Like :meth:`resolve` but raise ``AmbiguousLocalDevice`` when unresolved."""
        resolution = self.resolve(db, register_id, candidate_id)
        if resolution.local_device_id is None:
            raise AmbiguousLocalDevice(resolution.candidate_dicts())
        return resolution.local_device_id

    def register_device(
        self,
        db: Session,
        *,
        device_id: str,
        register_id: str,
        label: str | None,
        latitude: float,
        longitude: float,
    ) -> LocalDevice:
        """Attach a terminal to a register, respecting the register's capacity."""
        register = db.get(Register, register_id)
        if register is None:
            raise NotFound(f"Register {register_id} not found", code="srv_register_not_found")

        existing = db.scalar(select(LocalDevice).where(LocalDevice.device_id == device_id))
        if existing is not None:
            raise Conflict(
                f"Device {device_id} is already registered",
                code="srv_device_already_registered",
            )

        if len(self.devices_for(db, register_id)) >= register.max_local_devices:
            raise ValidationError(
                f"Register {register_id} has no free local device slots",
                code="srv_max_local_devices_reached",
            )

        device = LocalDevice(
            register_id=register_id,
            device_id=device_id,
            label=label,
            latitude=latitude,
            longitude=longitude,
            last_seen_at=utcnow(),
        )
        db.add(device)
        db.commit()
        db.refresh(device)
        logger.info("Registered local device %s at register %s", device.id, register_id)
        return device

    def unregister_device(self, db: Session, *, device_id: str, register_id: str, local_id: str) -> None:
        """Remove a terminal on its own request; all three identifiers must match."""
        device = db.get(LocalDevice, local_id)
        if device is None or device.device_id != device_id or device.register_id != register_id:
            raise NotFound("Local device not found", code="srv_local_device_not_found")
        self._delete(db, device)

    def delete_device(self, db: Session, local_id: str, *, retail_id: str | None = None) -> None:
        """Remove a terminal as an administrator, optionally scoped to one retail."""
        device = db.get(LocalDevice, local_id)
        if device is None:
            raise NotFound("Local device not found", code="srv_local_device_not_found")
        if retail_id is not None:
            register = db.get(Register, device.register_id)
            if register is None or register.retail_id != retail_id:
                raise NotFound("Local device not found", code="srv_local_device_not_found")
        self._delete(db, device)

    @staticmethod
    def _delete(db: Session, device: LocalDevice) -> None:
        # Attendance history keeps its reference to the removed terminal.
        db.delete(device)
        db.commit()
        logger.info("Deleted local device %s of register %s", device.id, device.register_id)

    def list_for_register(self, db: Session, register_id: str) -> list[dict[str, Any]]:
        """List a register's terminals with their distance from the register in meters."""
        register = db.get(Register, register_id)
        if register is None:
            raise NotFound(f"Register {register_id} not found", code="srv_register_not_found")

        listed: list[dict[str, Any]] = []
        for device in self.devices_for(db, register_id):
            distance = None
            if device.latitude is not None and device.longitude is not None:
                distance = round(
                    haversine_distance(
                        register.latitude,
                        register.longitude,
                        device.latitude,
                        device.longitude,
                    ),
                    1,
                )
            listed.append(
                {
                    **describe_device(device),
                    "latitude": device.latitude,
                    "longitude": device.longitude,
                    "distance": distance,
                    "lastSeenAt": device.last_seen_at.isoformat() if device.last_seen_at else None,
                }
            )
        return listed


def get_local_device_resolver() -> LocalDeviceResolver:
    return LocalDeviceResolver()
