"""HTTP transport to a single domain."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from shiftlink.core.errors import AmbiguousLocalDevice, DomainUnreachable, error_from_response
from shiftlink.utils.deeplink import normalize_domain

logger = logging.getLogger(__name__)

HTTP_INTERNAL_SERVER_ERROR = 500


class DomainClient:
    """``httpx`` wrapper speaking the ``{success, msg}`` protocol of one domain.

    Transport failures and timeouts become ``DomainUnreachable``; error bodies
    are mapped back onto the shared error taxonomy.
    """

    def __init__(
        self,
        base_url: str,
        *,
        app_id: str,
        timeout_seconds: float = 5.0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = normalize_domain(base_url)
        self.app_id = app_id
        self.timeout_seconds = timeout_seconds
        self._verify = verify
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout_seconds),
                    verify=self._verify,
                    transport=self._transport,
                )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, Any] | None = None,
        employee_id: str | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded success body.

        Raises:
            DomainUnreachable: On network errors, timeouts and unusable responses.
            AttendanceError: The matching subclass for ``{"success": false}`` bodies.
        """
        client = await self._ensure_client()
        headers = {"App-Id": self.app_id}
        if employee_id:
            headers["Employee-Id"] = employee_id

        try:
            response = await client.request(
                method,
                path,
                json=json_data,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as exc:
            raise DomainUnreachable(self.base_url, "timeout") from exc
        except httpx.HTTPError as exc:
            raise DomainUnreachable(self.base_url, str(exc) or type(exc).__name__) from exc

        return self._unwrap(response)

    def _unwrap(self, response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "success" not in body:
            logger.warning(
                "Unexpected response from %s (%s %s)",
                self.base_url,
                response.status_code,
                response.request.url.path,
            )
            raise DomainUnreachable(self.base_url, f"HTTP {response.status_code}")

        if body["success"]:
            return body

        code = body.get("msg") if isinstance(body.get("msg"), str) else None
        if code == AmbiguousLocalDevice.code:
            raise AmbiguousLocalDevice(body.get("localDevices") or [])
        if code is None and response.status_code >= HTTP_INTERNAL_SERVER_ERROR:
            raise DomainUnreachable(self.base_url, f"HTTP {response.status_code}")
        raise error_from_response(response.status_code, code)

    async def get(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request("POST", path, **kwargs)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> DomainClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
