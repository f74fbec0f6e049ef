"""Signed request builder for mutating attendance calls."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from shiftlink.client.models import DeviceIdentity
from shiftlink.schemas.envelope import SignedPayload
from shiftlink.services.crypto import CryptoService, encode_b64
from shiftlink.utils.canonical import canonicalize


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class Envelope:
    """A signed, timestamped, nonce-tagged wrapper for one request.

    Built per call and never persisted.
    """

    canonical_payload: bytes
    timestamp: int
    nonce: str
    signature: str
    employee_id: str

    def to_token(self) -> dict[str, Any]:
        """Return the wire ``token`` object."""
        return {
            "employeeId": self.employee_id,
            "timestamp": self.timestamp,
            "nonce": self.nonce,
            "signature": self.signature,
        }


class SignedRequestBuilder:
    """Canonicalizes typed payloads and signs them with a device identity."""

    def __init__(
        self,
        *,
        clock: Callable[[], int] = _now_ms,
        nonce_factory: Callable[[], str] = CryptoService.generate_nonce,
    ) -> None:
        self._clock = clock
        self._nonce_factory = nonce_factory

    def build_envelope(self, payload: SignedPayload, identity: DeviceIdentity) -> Envelope:
        """Sign ``payload`` for ``identity`` with a fresh timestamp and nonce."""
        timestamp = self._clock()
        nonce = self._nonce_factory()
        canonical = canonicalize(
            payload.canonical_fields(),
            timestamp=timestamp,
            nonce=nonce,
            employee_id=identity.employee_id,
        )
        signature = CryptoService.sign_message(identity.private_key, canonical)
        return Envelope(
            canonical_payload=canonical,
            timestamp=timestamp,
            nonce=nonce,
            signature=encode_b64(signature),
            employee_id=identity.employee_id,
        )

    def build_body(self, payload: SignedPayload, identity: DeviceIdentity) -> dict[str, Any]:
        """Return the request body ``{...payload, "token": {...}}``."""
        envelope = self.build_envelope(payload, identity)
        return {**payload.canonical_fields(), "token": envelope.to_token()}
