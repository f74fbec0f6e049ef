"""Device-side identity and domain records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from shiftlink.services.crypto import decode_b64, encode_b64


def _now() -> datetime:
    return datetime.now(UTC)


class PairingState(str, enum.Enum):
    """Per-domain pairing lifecycle: Unpaired -> Pairing -> Paired."""

    UNPAIRED = "unpaired"
    PAIRING = "pairing"
    PAIRED = "paired"


@dataclass(frozen=True)
class DeviceIdentity:
    """Keypair binding this device to one employee of one domain.

    The private key only ever leaves this object towards secure storage.
    """

    domain: str
    employee_id: str
    public_key: bytes
    private_key: bytes = field(repr=False)
    created_at: datetime = field(default_factory=_now)

    @property
    def public_key_b64(self) -> str:
        return encode_b64(self.public_key)

    def to_record(self) -> dict[str, Any]:
        """Serialize for secure storage only."""
        return {
            "domain": self.domain,
            "employeeId": self.employee_id,
            "publicKey": encode_b64(self.public_key),
            "privateKey": encode_b64(self.private_key),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> DeviceIdentity:
        return cls(
            domain=record["domain"],
            employee_id=record["employeeId"],
            public_key=decode_b64(record["publicKey"]),
            private_key=decode_b64(record["privateKey"]),
            created_at=datetime.fromisoformat(record["createdAt"]),
        )


@dataclass(frozen=True)
class PendingIdentity:
    """A keypair generated for a domain whose registration token is not yet consumed."""

    domain: str
    public_key: bytes
    private_key: bytes = field(repr=False)
    employee_draft: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)

    @property
    def public_key_b64(self) -> str:
        return encode_b64(self.public_key)

    def to_record(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "publicKey": encode_b64(self.public_key),
            "privateKey": encode_b64(self.private_key),
            "employeeDraft": dict(self.employee_draft),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> PendingIdentity:
        return cls(
            domain=record["domain"],
            public_key=decode_b64(record["publicKey"]),
            private_key=decode_b64(record["privateKey"]),
            employee_draft=dict(record.get("employeeDraft") or {}),
            created_at=datetime.fromisoformat(record["createdAt"]),
        )


@dataclass
class Domain:
    """An employer backend this device is paired with."""

    url: str
    paired_employee_id: str
    display_name: str | None = None
    paired_at: datetime = field(default_factory=_now)

    def to_record(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "pairedEmployeeId": self.paired_employee_id,
            "displayName": self.display_name,
            "pairedAt": self.paired_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Domain:
        return cls(
            url=record["url"],
            paired_employee_id=record["pairedEmployeeId"],
            display_name=record.get("displayName"),
            paired_at=datetime.fromisoformat(record["pairedAt"]),
        )
