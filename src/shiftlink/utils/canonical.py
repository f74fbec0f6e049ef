"""Deterministic serialization of signed request payloads.

Device and server must produce byte-identical input for the signature, so the
canonical form is sorted-key compact JSON with the replay metadata bound next
to (never inside) the payload:

    {"employeeId": ..., "nonce": ..., "payload": {...}, "timestamp": ...}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from shiftlink.core.errors import ValidationError

RESERVED_PAYLOAD_KEYS = frozenset({"timestamp", "nonce", "token", "signature"})


def canonicalize(
    payload: Mapping[str, Any],
    *,
    timestamp: int,
    nonce: str,
    employee_id: str,
) -> bytes:
    """Return the exact bytes that get signed for ``payload``.

    Raises:
        ValidationError: If the payload carries a reserved envelope key or a
            value JSON cannot represent deterministically (NaN, Infinity).
    """
    clashing = sorted(RESERVED_PAYLOAD_KEYS.intersection(payload))
    if clashing:
        raise ValidationError(
            f"Payload may not contain reserved key {clashing[0]!r}",
            field=clashing[0],
        )

    document = {
        "employeeId": employee_id,
        "nonce": nonce,
        "payload": dict(payload),
        "timestamp": int(timestamp),
    }
    try:
        encoded = json.dumps(
            document,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except ValueError as err:
        raise ValidationError(f"Payload is not canonicalizable: {err}") from err
    return encoded.encode("utf-8")
