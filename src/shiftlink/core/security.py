"""Signature verification and admin token utilities."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import jwt
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from shiftlink.core.settings import settings


def verify_signature(pubkey: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Args:
        pubkey: Raw 32-byte public key.
        message: Exact bytes that were signed on the device.
        signature: Raw 64-byte signature.

    Returns:
        True if the signature is valid for `message` under `pubkey`; False otherwise.
    """
    try:
        VerifyKey(pubkey).verify(message, signature)
        return True
    except (BadSignatureError, CryptoError, ValueError, TypeError):
        return False


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token for an admin acting on behalf of a retail."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, object]:
    """Decode and validate an admin access token.

    Raises:
        jose.JWTError: If the token is malformed, expired or forged.
    """
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
