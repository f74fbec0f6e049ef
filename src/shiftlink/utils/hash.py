# src/shiftlink/utils/hash.py
"""BLAKE3 hashing helpers."""

from __future__ import annotations

from blake3 import blake3

FINGERPRINT_HEX_LENGTH = 16


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


def key_fingerprint(public_key: bytes) -> str:
    """Short, log-safe identifier of a public key."""
    return blake3_hexdigest(public_key)[:FINGERPRINT_HEX_LENGTH]
