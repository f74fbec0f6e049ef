"""Registration tokens: issuing, describing and consuming device pairings."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from shiftlink.core.errors import NotFound, TokenConsumed, TokenExpired, ValidationError
from shiftlink.core.settings import settings
from shiftlink.db.time import utcnow
from shiftlink.models import Employee, RegistrationState, RegistrationToken
from shiftlink.schemas.registration import RegistrationForm
from shiftlink.services.crypto import CryptoService
from shiftlink.utils.deeplink import build_intent_link, build_pairing_link

logger = logging.getLogger(__name__)

TOKEN_ID_BYTES = 16


def _retail_dict(employee: Employee) -> dict[str, Any]:
    return {"id": employee.retail.id, "name": employee.retail.name, "tin": employee.retail.tin}


class RegistrationService:
    """Owns the ``Issued -> Consumed | Expired`` lifecycle of pairing tokens.

    Consuming a token rotates the employee's public key in the same transaction
    that marks the token consumed. With ``grace_seconds == 0`` the superseded
    key stops verifying the moment the rotation commits.
    """

    def __init__(
        self,
        *,
        ttl_minutes: int | None = None,
        grace_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ttl_minutes = ttl_minutes or settings.registration_ttl_minutes
        self.grace_seconds = (
            settings.key_rotation_grace_seconds if grace_seconds is None else grace_seconds
        )
        self._clock = clock

    def issue_token(self, db: Session, employee: Employee, *, domain: str) -> dict[str, Any]:
        """Create a fresh token for ``employee`` and return its pairing links."""
        if not employee.is_active:
            raise ValidationError("Employee is not active", code="srv_employee_not_employed")

        now = self._clock()
        token = RegistrationToken(
            token_id=secrets.token_urlsafe(TOKEN_ID_BYTES),
            employee_id=employee.id,
            retail_id=employee.retail_id,
            created_at=now,
            expires_at=now + timedelta(minutes=self.ttl_minutes),
        )
        db.add(token)
        db.commit()
        logger.info("Issued registration token for employee %s", employee.id)
        return {
            "tokenId": token.token_id,
            "expiresAt": token.expires_at.isoformat(),
            "link": build_pairing_link(domain, token.token_id, scheme=settings.app_scheme),
            "intentUrl": build_intent_link(domain, token.token_id),
        }

    def _load(self, db: Session, token_id: str) -> RegistrationToken:
        token = db.get(RegistrationToken, token_id)
        if token is None:
            raise NotFound("Registration token not found", code="srv_registration_not_found")
        return token

    @staticmethod
    def _raise_for_state(state: RegistrationState) -> None:
        if state is RegistrationState.CONSUMED:
            raise TokenConsumed()
        if state is RegistrationState.EXPIRED:
            raise TokenExpired()

    def describe(self, db: Session, token_id: str) -> dict[str, Any]:
        """Return the employee draft and retail a still-usable token pairs with."""
        token = self._load(db, token_id)
        self._raise_for_state(token.state(self._clock()))
        employee = token.employee
        return {
            "tokenId": token.token_id,
            "expiresAt": token.expires_at.isoformat(),
            "employee": {
                "id": employee.id,
                "name": employee.name,
                "email": employee.email,
                "phone": employee.phone,
            },
            "retail": _retail_dict(employee),
        }

    def consume(
        self,
        db: Session,
        token_id: str,
        *,
        device_id: str,
        form: RegistrationForm,
    ) -> dict[str, Any]:
        """Bind ``form.public_key`` to the token's employee.

        The token is claimed with a conditional UPDATE so that two concurrent
        submissions can never both succeed.

        Raises:
            TokenConsumed: The token was already used.
            TokenExpired: The token is past its expiry.
            NotFound: The token does not exist.
            ValidationError: The public key is malformed.
        """
        try:
            public_key = CryptoService.validate_and_decode_pubkey(form.public_key)
        except ValueError as err:
            raise ValidationError(
                str(err),
                field="form.publicKey",
                code="srv_invalid_public_key",
            ) from err

        now = self._clock()
        claimed = db.execute(
            update(RegistrationToken)
            .where(
                RegistrationToken.token_id == token_id,
                RegistrationToken.consumed_at.is_(None),
                RegistrationToken.expires_at > now,
            )
            .values(consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        token = self._load(db, token_id)
        db.refresh(token)
        if claimed.rowcount != 1:
            self._raise_for_state(token.state(now))
            raise TokenConsumed()

        employee = token.employee
        self._rotate_key(employee, public_key, device_id=device_id, now=now)
        employee.name = form.name
        if form.email is not None:
            employee.email = form.email
        if form.phone is not None:
            employee.phone = form.phone
        db.commit()
        db.refresh(employee)

        logger.info(
            "Paired employee %s with device %s using key %s",
            employee.id,
            device_id,
            employee.key_fingerprint,
        )
        return {
            "code": "srv_device_registered",
            "employeeId": employee.id,
            "retail": _retail_dict(employee),
        }

    def _rotate_key(self, employee: Employee, public_key: bytes, *, device_id: str, now: datetime) -> None:
        if self.grace_seconds > 0 and employee.public_key is not None:
            employee.previous_public_key = employee.public_key
            employee.previous_key_expires_at = now + timedelta(seconds=self.grace_seconds)
        else:
            employee.previous_public_key = None
            employee.previous_key_expires_at = None
        employee.public_key = public_key
        employee.device_id = device_id
        employee.paired_at = now

    def cancel_pairing(self, db: Session, employee: Employee, *, retail_id: str) -> None:
        """Revoke the employee's device identity and any outstanding tokens."""
        if employee.retail_id != retail_id:
            raise NotFound("Retail not found", code="srv_retail_not_found")

        employee.public_key = None
        employee.previous_public_key = None
        employee.previous_key_expires_at = None
        employee.device_id = None
        employee.paired_at = None
        db.execute(
            delete(RegistrationToken)
            .where(
                RegistrationToken.employee_id == employee.id,
                RegistrationToken.consumed_at.is_(None),
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Cancelled pairing of employee %s", employee.id)


def get_registration_service() -> RegistrationService:
    return RegistrationService()
