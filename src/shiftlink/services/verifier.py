"""Server-side verification of signed device envelopes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import NoReturn

from sqlalchemy.orm import Session

from shiftlink.core.errors import InvalidSignature, ReplayDetected
from shiftlink.core.security import verify_signature
from shiftlink.core.settings import settings
from shiftlink.db.time import now_ms
from shiftlink.models import Employee
from shiftlink.schemas.envelope import SignedPayload, SignedToken
from shiftlink.services.crypto import CryptoService
from shiftlink.services.replay import ReplayProtectionService, get_replay_service
from shiftlink.utils.canonical import canonicalize

logger = logging.getLogger(__name__)


class EnvelopeVerifier:
    """Authenticates signed requests and enforces replay protection.

    Checks run cheapest-first and the nonce is only recorded once the signature
    has verified, so forged requests cannot burn a legitimate device's nonces.
    Failures raise ``InvalidSignature`` or ``ReplayDetected``; both render as the
    same generic 401 to clients.
    """

    def __init__(
        self,
        replay_service: ReplayProtectionService,
        *,
        window_seconds: int | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._replay = replay_service
        self.window_seconds = settings.replay_window_seconds if window_seconds is None else window_seconds
        self._clock = clock

    def verify(
        self,
        db: Session,
        token: SignedToken,
        payload: SignedPayload,
        *,
        device_id: str,
    ) -> Employee:
        """Return the employee whose device signed ``payload``.

        Args:
            db: Database session used to resolve the stored public key.
            token: Replay metadata and signature from the request body.
            payload: Typed payload rebuilt from the request fields.
            device_id: ``App-Id`` header of the calling device.
        """
        employee = db.get(Employee, token.employee_id)
        if employee is None or not employee.is_active or employee.public_key is None:
            self._reject(InvalidSignature, token, "unknown or unpaired identity")
        if employee.device_id != device_id:
            self._reject(InvalidSignature, token, "identity is paired with another device")

        now = self._clock()
        window_ms = self.window_seconds * 1000
        if abs(now - token.timestamp) > window_ms:
            self._reject(ReplayDetected, token, f"timestamp skew {now - token.timestamp} ms")

        try:
            signature = CryptoService.decode_signature(token.signature)
        except ValueError:
            self._reject(InvalidSignature, token, "malformed signature")

        message = canonicalize(
            payload.canonical_fields(),
            timestamp=token.timestamp,
            nonce=token.nonce,
            employee_id=token.employee_id,
        )
        if not verify_signature(employee.public_key, message, signature):
            grace_key = employee.grace_key(datetime.fromtimestamp(now / 1000, UTC))
            if grace_key is None or not verify_signature(grace_key, message, signature):
                self._reject(InvalidSignature, token, "signature mismatch")
            logger.info(
                "Employee %s signed with superseded key %s inside the rotation grace window",
                employee.id,
                CryptoService.fingerprint(grace_key),
            )

        ttl_seconds = (token.timestamp + window_ms - now) / 1000
        if not self._replay.check_and_register(employee.id, token.nonce, ttl_seconds):
            self._reject(ReplayDetected, token, "nonce already used")

        return employee

    @staticmethod
    def _reject(
        error_type: type[InvalidSignature] | type[ReplayDetected],
        token: SignedToken,
        reason: str,
    ) -> NoReturn:
        logger.warning(
            "Rejected signed request for employee %s (nonce %s): %s",
            token.employee_id,
            token.nonce,
            reason,
        )
        raise error_type(reason)


def get_verifier() -> EnvelopeVerifier:
    """Return a verifier bound to the process-wide replay cache."""
    return EnvelopeVerifier(get_replay_service())
