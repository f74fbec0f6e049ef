"""Key vault and pairing flow on the device."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from threading import RLock
from typing import TYPE_CHECKING, Any

from shiftlink.client.models import DeviceIdentity, Domain, PairingState, PendingIdentity
from shiftlink.client.settings import ClientSettings
from shiftlink.client.storage import SecureStorage
from shiftlink.client.transport import DomainClient
from shiftlink.core.errors import DomainUnreachable, ValidationError
from shiftlink.schemas.registration import RegistrationForm, RegistrationSubmit
from shiftlink.services.crypto import CryptoService
from shiftlink.utils.deeplink import normalize_domain

if TYPE_CHECKING:
    from shiftlink.client.directory import SessionDirectory

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], DomainClient]


class KeyVault:
    """Generates per-domain keypairs and keeps them in secure storage.

    Storage layout (one document)::

        {"appId": ..., "pending": {url: ...}, "identities": {url: ...}, "domains": {url: ...}}

    Private keys are written to storage only; they are never part of a request.
    """

    def __init__(
        self,
        storage: SecureStorage,
        *,
        settings: ClientSettings | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.storage = storage
        self.settings = settings or ClientSettings()
        self._client_factory = client_factory or self._default_client
        self._lock = RLock()

    def _default_client(self, url: str) -> DomainClient:
        return DomainClient(
            url,
            app_id=self.app_id,
            timeout_seconds=self.settings.request_timeout_seconds,
            verify=self.settings.verify_tls,
        )

    def client_for(self, domain: str) -> DomainClient:
        return self._client_factory(normalize_domain(domain))

    @property
    def app_id(self) -> str:
        """Stable installation identifier sent as the ``App-Id`` header."""
        with self._lock:
            document = self.storage.load()
            app_id = document.get("appId")
            if not app_id:
                app_id = uuid.uuid4().hex
                document["appId"] = app_id
                self.storage.save(document)
            return app_id

    def identities(self) -> dict[str, DeviceIdentity]:
        document = self.storage.load()
        return {
            url: DeviceIdentity.from_record(record)
            for url, record in (document.get("identities") or {}).items()
        }

    def domains(self) -> list[Domain]:
        """Return paired domains ordered by pairing time."""
        document = self.storage.load()
        domains = [Domain.from_record(record) for record in (document.get("domains") or {}).values()]
        return sorted(domains, key=lambda domain: domain.paired_at)

    def pending(self, domain: str) -> PendingIdentity | None:
        record = (self.storage.load().get("pending") or {}).get(normalize_domain(domain))
        return PendingIdentity.from_record(record) if record else None

    def state(self, domain: str) -> PairingState:
        url = normalize_domain(domain)
        document = self.storage.load()
        if url in (document.get("pending") or {}):
            return PairingState.PAIRING
        if url in (document.get("identities") or {}):
            return PairingState.PAIRED
        return PairingState.UNPAIRED

    def generate_identity(self, domain: str, employee_draft: Mapping[str, Any] | None = None) -> str:
        """Create a keypair for ``domain`` and park it until pairing completes.

        Any existing identity for the domain keeps working until the new key
        is accepted by the server.

        Returns:
            The URL-safe base64 public key to register.
        """
        url = normalize_domain(domain)
        private_key, public_key = CryptoService.generate_key_pair()
        pending = PendingIdentity(
            domain=url,
            public_key=public_key,
            private_key=private_key,
            employee_draft=dict(employee_draft or {}),
        )
        with self._lock:
            document = self.storage.load()
            document.setdefault("pending", {})[url] = pending.to_record()
            self.storage.save(document)
        logger.info("Generated key %s for %s", CryptoService.fingerprint(public_key), url)
        return pending.public_key_b64

    async def fetch_registration(self, domain: str, token_id: str) -> dict[str, Any]:
        """Return the employee draft and retail a registration token belongs to."""
        async with self.client_for(domain) as client:
            body = await client.get(f"/api/registration/{token_id}")
        msg = body.get("msg")
        if not isinstance(msg, dict):
            raise DomainUnreachable(normalize_domain(domain), "malformed registration response")
        return msg

    async def consume_registration_token(
        self,
        token_id: str,
        domain: str,
        public_key: str,
        employee_form: Mapping[str, Any],
        *,
        directory: SessionDirectory | None = None,
    ) -> DeviceIdentity:
        """Bind the pending ``public_key`` to the token's employee.

        On success the pending key replaces any previous identity of the domain
        and the domain record is written in the same storage write.

        Raises:
            TokenExpired: The token is past its expiry.
            TokenConsumed: The token was already used.
            ValidationError: ``public_key`` is not the pending key of ``domain``.
        """
        url = normalize_domain(domain)
        pending = self.pending(url)
        if pending is None or pending.public_key_b64 != public_key:
            raise ValidationError("No pending key matches this public key", field="publicKey")

        submit = RegistrationSubmit(
            token_id=token_id,
            form=RegistrationForm(public_key=public_key, **dict(employee_form)),
        )
        async with self.client_for(url) as client:
            body = await client.post(
                "/api/registration",
                json_data=submit.model_dump(mode="json", by_alias=True, exclude_none=True),
            )

        msg = body.get("msg")
        if not isinstance(msg, dict) or not msg.get("employeeId"):
            raise DomainUnreachable(url, "malformed registration response")
        now = datetime.now(UTC)
        identity = DeviceIdentity(
            domain=url,
            employee_id=msg["employeeId"],
            public_key=pending.public_key,
            private_key=pending.private_key,
            created_at=now,
        )
        retail = msg.get("retail") or {}
        paired = Domain(
            url=url,
            paired_employee_id=identity.employee_id,
            display_name=retail.get("name"),
            paired_at=now,
        )

        with self._lock:
            document = self.storage.load()
            (document.get("pending") or {}).pop(url, None)
            document.setdefault("identities", {})[url] = identity.to_record()
            document.setdefault("domains", {})[url] = paired.to_record()
            self.storage.save(document)

        logger.info("Paired with %s as employee %s", url, identity.employee_id)
        if directory is not None:
            directory.add_domain(paired, identity)
        return identity

    def forget(self, domain: str) -> None:
        """Drop every key and record held for ``domain``."""
        url = normalize_domain(domain)
        with self._lock:
            document = self.storage.load()
            for section in ("pending", "identities", "domains"):
                (document.get(section) or {}).pop(url, None)
            self.storage.save(document)
        logger.info("Forgot identity for %s", url)
