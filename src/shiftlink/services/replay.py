"""Replay protection for signed device requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import lru_cache
from threading import Lock
from typing import Any, Final

import redis

from shiftlink.core.errors import ServiceUnavailable
from shiftlink.core.settings import settings

logger = logging.getLogger(__name__)

_PURGE_INTERVAL_SECONDS: Final[float] = 30.0


class ReplayProtectionService:
    """Tracks nonces accepted per identity for the lifetime of the replay window.

    ``check_and_register`` is the only write path and is atomic: Redis ``SET NX``
    when a Redis URL is configured, otherwise a lock-guarded in-process map with
    per-entry expiry. Two concurrent requests carrying the same nonce can never
    both be accepted. A Redis failure refuses the request and the next call
    tries Redis again.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis = client
        self._clock = clock
        if self._redis is None and redis_url:
            self._redis = redis.from_url(redis_url)  # type: ignore[no-untyped-call]
        self._entries: dict[str, float] = {}
        self._lock = Lock()
        self._next_purge = 0.0

    @staticmethod
    def _key(identity: str, nonce: str) -> str:
        return f"replay:{identity}:{nonce}"

    def check_and_register(self, identity: str, nonce: str, ttl_seconds: float) -> bool:
        """Record ``nonce`` for ``identity``.

        Returns:
            True if this is the first sighting within the TTL; False on replay.

        Raises:
            ServiceUnavailable: The configured Redis store did not answer. The
                request is refused rather than checked against a local map that
                never saw the nonces Redis holds.
        """
        key = self._key(identity, nonce)
        ttl = max(1, int(ttl_seconds + 0.999))
        if self._redis is not None:
            try:
                return bool(self._redis.set(key, "1", nx=True, ex=ttl))
            except redis.RedisError as err:
                logger.error("Replay cache unavailable, refusing nonce for %s: %s", identity, err)
                raise ServiceUnavailable("Replay cache unavailable") from err

        now = self._clock()
        with self._lock:
            self._purge_locked(now)
            expiry = self._entries.get(key)
            if expiry is not None and expiry > now:
                return False
            self._entries[key] = now + ttl
            return True

    def is_replay(self, identity: str, nonce: str) -> bool:
        """Return True if the nonce is currently recorded for the identity."""
        key = self._key(identity, nonce)
        if self._redis is not None:
            try:
                return bool(self._redis.exists(key))
            except redis.RedisError as err:
                logger.error("Replay cache unavailable: %s", err)
                raise ServiceUnavailable("Replay cache unavailable") from err

        now = self._clock()
        with self._lock:
            expiry = self._entries.get(key)
            return expiry is not None and expiry > now

    def tracked_count(self) -> int:
        """Number of unexpired nonces held in the in-process store."""
        with self._lock:
            self._purge_locked(self._clock(), force=True)
            return len(self._entries)

    def _purge_locked(self, now: float, *, force: bool = False) -> None:
        if not force and now < self._next_purge:
            return
        expired = [key for key, expiry in self._entries.items() if expiry <= now]
        for key in expired:
            del self._entries[key]
        self._next_purge = now + _PURGE_INTERVAL_SECONDS


@lru_cache(maxsize=1)
def get_replay_service() -> ReplayProtectionService:
    """Return the process-wide replay protection service."""
    return ReplayProtectionService(settings.redis_url)
