# tests/helpers.py
"""Signing helpers shared by the API tests."""

from __future__ import annotations

import secrets
import time
from typing import Any

from nacl.signing import SigningKey

from shiftlink.schemas.envelope import SignedPayload
from shiftlink.services.crypto import encode_b64
from shiftlink.utils.canonical import canonicalize

DEVICE_ID = "device-d1"
REGISTER_LAT = 52.5200
REGISTER_LON = 13.4050


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_identity() -> dict[str, Any]:
    signing_key = SigningKey.generate()
    public_key = signing_key.verify_key.encode()
    return {
        "signing_key": signing_key,
        "public_key": public_key,
        "public_key_b64": encode_b64(public_key),
    }


def signed_body(
    signing_key: SigningKey,
    employee_id: str,
    payload: SignedPayload,
    *,
    timestamp: int | None = None,
    nonce: str | None = None,
) -> dict[str, Any]:
    """Return a request body exactly as a paired device would send it."""
    timestamp = now_ms() if timestamp is None else timestamp
    nonce = nonce or secrets.token_hex(16)
    fields = payload.canonical_fields()
    message = canonicalize(fields, timestamp=timestamp, nonce=nonce, employee_id=employee_id)
    signature = signing_key.sign(message).signature
    return {
        **fields,
        "token": {
            "employeeId": employee_id,
            "timestamp": timestamp,
            "nonce": nonce,
            "signature": encode_b64(signature),
        },
    }
