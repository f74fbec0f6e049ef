# src/shiftlink/services/crypto.py
"""Cryptographic services for device identities."""

from __future__ import annotations

import base64
import secrets

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from shiftlink.utils.hash import key_fingerprint

PUBKEY_LENGTH_BYTES = 32
PRIVATE_KEY_LENGTH_BYTES = 32
SIGNATURE_LENGTH_BYTES = 64
NONCE_BYTES = 16


def encode_b64(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def decode_b64(data: str) -> bytes:
    """Decode a URL-safe base64 string, accepting omitted padding."""
    padding = "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(data + padding)
    except Exception as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


class CryptoService:
    """Service handling Ed25519 key material and signatures."""

    @staticmethod
    def _decode_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            raise ValueError(f"Invalid hex encoding: {err}") from err

    @staticmethod
    def validate_and_decode_pubkey(pubkey_encoded: str) -> bytes:
        """Validate and decode an Ed25519 public key given as base64 or hex."""
        cleaned = pubkey_encoded.strip()
        errors: list[str] = []
        for decoder in (decode_b64, CryptoService._decode_hex):
            try:
                result = decoder(cleaned)
            except ValueError as err:
                errors.append(str(err))
                continue
            if len(result) != PUBKEY_LENGTH_BYTES:
                errors.append("Ed25519 public keys must be 32 bytes")
                continue
            try:
                Ed25519PublicKey.from_public_bytes(result)
            except ValueError as err:
                errors.append(str(err))
                continue
            return result
        joined = "; ".join(errors) if errors else "unknown decoding error"
        raise ValueError(f"Invalid public key format: {joined}")

    @staticmethod
    def decode_signature(signature_b64: str) -> bytes:
        """Decode a base64 signature and check its length."""
        signature = decode_b64(signature_b64)
        if len(signature) != SIGNATURE_LENGTH_BYTES:
            raise ValueError("Ed25519 signatures must be 64 bytes")
        return signature

    @staticmethod
    def generate_key_pair() -> tuple[bytes, bytes]:
        """Generate a new Ed25519 key pair for a device identity.

        Returns:
            Tuple of (private_key_bytes, public_key_bytes), both raw 32 bytes
        """
        private_key = Ed25519PrivateKey.generate()

        private_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_bytes = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return private_bytes, public_bytes

    @staticmethod
    def public_key_for(private_key_bytes: bytes) -> bytes:
        """Derive the raw public key of a raw private key."""
        private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
        return private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @staticmethod
    def sign_message(private_key_bytes: bytes, message: bytes) -> bytes:
        """Sign a message with a raw Ed25519 private key.

        Args:
            private_key_bytes: Raw Ed25519 private key bytes
            message: Message to sign

        Returns:
            Raw signature bytes
        """
        try:
            private_key = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
            return private_key.sign(message)
        except ValueError as err:
            raise ValueError(f"Invalid private key: {err}") from err

    @staticmethod
    def generate_nonce() -> str:
        """Generate a 128-bit hex nonce."""
        return secrets.token_hex(NONCE_BYTES)

    @staticmethod
    def fingerprint(public_key_bytes: bytes) -> str:
        return key_fingerprint(public_key_bytes)
