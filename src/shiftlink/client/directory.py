"""Multi-domain session directory and read fan-out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from shiftlink.client.envelope import Envelope, SignedRequestBuilder
from shiftlink.client.models import DeviceIdentity, Domain
from shiftlink.client.transport import DomainClient
from shiftlink.client.vault import KeyVault
from shiftlink.core.errors import AttendanceError, DomainUnreachable, NotPaired
from shiftlink.schemas.envelope import SignedPayload
from shiftlink.utils.deeplink import normalize_domain, parse_pairing_link

logger = logging.getLogger(__name__)

DomainFetch = Callable[[Domain, DomainClient, DeviceIdentity], Awaitable[tuple[list[dict[str, Any]], dict[str, Any]]]]


@dataclass
class AggregateResult:
    """Best-effort merge of one read across every paired domain.

    ``items`` are tagged with their ``domain`` and grouped in domain order;
    ``errors`` holds the failure of each domain that did not answer. ``meta``
    carries per-domain extras such as paging flags.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    errors: dict[str, AttendanceError] = field(default_factory=dict)
    meta: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.errors


class SessionDirectory:
    """Owns the paired domains of this device and the identity for each.

    Builders and clients receive identities from here explicitly; there is no
    process-wide "current identity".
    """

    def __init__(
        self,
        vault: KeyVault,
        *,
        builder: SignedRequestBuilder | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.vault = vault
        self.builder = builder or SignedRequestBuilder()
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else vault.settings.request_timeout_seconds
        )
        self._domains: dict[str, Domain] = {domain.url: domain for domain in vault.domains()}
        self._identities: dict[str, DeviceIdentity] = vault.identities()
        self._clients: dict[str, DomainClient] = {}

    def list_domains(self) -> list[Domain]:
        """Return paired domains ordered by pairing time."""
        return sorted(self._domains.values(), key=lambda domain: domain.paired_at)

    def get_identity(self, domain: str) -> DeviceIdentity:
        """Return the identity for ``domain``.

        Raises:
            NotPaired: If this device holds no identity for the domain.
        """
        url = normalize_domain(domain)
        identity = self._identities.get(url)
        if identity is None:
            raise NotPaired(url)
        return identity

    def add_domain(self, domain: Domain, identity: DeviceIdentity) -> None:
        """Register a freshly paired domain, replacing any previous pairing of it."""
        self._domains[domain.url] = domain
        self._identities[domain.url] = identity

    async def remove_domain(self, domain: str) -> None:
        url = normalize_domain(domain)
        self._domains.pop(url, None)
        self._identities.pop(url, None)
        self.vault.forget(url)
        client = self._clients.pop(url, None)
        if client is not None:
            await client.aclose()

    def client_for(self, domain: str) -> DomainClient:
        url = normalize_domain(domain)
        client = self._clients.get(url)
        if client is None:
            client = self.vault.client_for(url)
            self._clients[url] = client
        return client

    def build_envelope_for(self, domain: str, payload: SignedPayload) -> Envelope:
        """Sign ``payload`` with the identity of ``domain``; raises ``NotPaired`` first."""
        return self.builder.build_envelope(payload, self.get_identity(domain))

    def build_signed_body(self, domain: str, payload: SignedPayload) -> dict[str, Any]:
        return self.builder.build_body(payload, self.get_identity(domain))

    async def pair(self, link: str, employee_form: Mapping[str, Any] | None = None) -> DeviceIdentity:
        """Run the whole pairing flow for a scanned deep link.

        The employee draft returned by the domain pre-fills the form unless one
        is given.
        """
        parsed = parse_pairing_link(link, scheme=self.vault.settings.app_scheme)
        draft = await self.vault.fetch_registration(parsed.domain, parsed.token_id)
        employee = draft.get("employee") or {}
        public_key = self.vault.generate_identity(parsed.domain, employee)
        form = dict(employee_form) if employee_form is not None else {
            "name": employee.get("name"),
            "email": employee.get("email"),
            "phone": employee.get("phone"),
        }
        return await self.vault.consume_registration_token(
            parsed.token_id,
            parsed.domain,
            public_key,
            form,
            directory=self,
        )

    async def _fan_out(self, fetch: DomainFetch) -> AggregateResult:
        domains = self.list_domains()
        answers: dict[str, tuple[list[dict[str, Any]], dict[str, Any]]] = {}
        errors: dict[str, AttendanceError] = {}

        async def run(domain: Domain) -> None:
            try:
                identity = self.get_identity(domain.url)
                client = self.client_for(domain.url)
                answers[domain.url] = await asyncio.wait_for(
                    fetch(domain, client, identity),
                    timeout=self.timeout_seconds,
                )
            except TimeoutError:
                errors[domain.url] = DomainUnreachable(domain.url, "timeout")
            except AttendanceError as err:
                errors[domain.url] = err
            else:
                return
            logger.warning("Aggregation skipped %s: %s", domain.url, errors[domain.url])

        async with asyncio.TaskGroup() as group:
            for domain in domains:
                group.create_task(run(domain))

        result = AggregateResult(
            errors={domain.url: errors[domain.url] for domain in domains if domain.url in errors},
        )
        for domain in domains:
            if domain.url not in answers:
                continue
            items, meta = answers[domain.url]
            result.items.extend({**item, "domain": domain.url} for item in items)
            if meta:
                result.meta[domain.url] = meta
        return result

    async def get_today_workplaces(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AggregateResult:
        """Today's eligible registers from every paired domain."""
        location = {"latitude": latitude, "longitude": longitude}

        async def fetch(
            domain: Domain,
            client: DomainClient,
            identity: DeviceIdentity,
        ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
            body = await client.post(
                "/api/workplaces",
                json_data={key: value for key, value in location.items() if value is not None},
                employee_id=identity.employee_id,
            )
            return _item_list(domain, body.get("msg")), {}

        return await self._fan_out(fetch)

    async def get_my_companies(self) -> AggregateResult:
        async def fetch(
            domain: Domain,
            client: DomainClient,
            identity: DeviceIdentity,
        ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
            body = await client.get("/api/companies", employee_id=identity.employee_id)
            return _item_list(domain, body.get("msg")), {}

        return await self._fan_out(fetch)

    async def get_attendances(self, limit: int | None = None, skip: int = 0) -> AggregateResult:
        """One page of attendance history per domain; ``meta`` holds ``hasMore`` and registers."""
        params: dict[str, Any] = {"skip": skip}
        if limit is not None:
            params["limit"] = limit

        async def fetch(
            domain: Domain,
            client: DomainClient,
            identity: DeviceIdentity,
        ) -> tuple[list[dict[str, Any]], dict[str, Any]]:
            body = await client.get("/api/attendances", params=params, employee_id=identity.employee_id)
            msg = body.get("msg")
            if not isinstance(msg, dict):
                raise DomainUnreachable(domain.url, "malformed response")
            meta = {"hasMore": bool(msg.get("hasMore")), "registers": msg.get("registers") or []}
            return _item_list(domain, msg.get("attendances")), meta

        return await self._fan_out(fetch)

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()


def _item_list(domain: Domain, value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise DomainUnreachable(domain.url, "malformed response")
    return value
