"""Idempotency protection for booking transitions and payments."""

import asyncio
import hashlib
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import timedelta
from functools import lru_cache
from typing import Any, TypeVar

from hotelops.config import settings
from hotelops.core.clock import Clock, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IdempotencyStore:
    """In-memory idempotency key store.

    Results are kept per process; requests sharing a key are serialised on a
    per-key lock so only the first one executes.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=24), clock: Clock = system_clock):
        self._keys: dict[str, dict] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._ttl = ttl
        self._clock = clock

    def _cleanup_expired(self) -> None:
        """Remove expired keys."""
        now = self._clock.now()
        expired = [k for k, v in self._keys.items() if v["expires_at"] < now]
        for k in expired:
            del self._keys[k]

    def get(self, key: str) -> Any | None:
        """Get stored result for idempotency key."""
        self._cleanup_expired()
        entry = self._keys.get(key)
        if entry and entry["expires_at"] > self._clock.now():
            return entry["result"]
        return None

    def set(self, key: str, result: Any) -> None:
        """Store result for idempotency key."""
        self._keys[key] = {
            "result": result,
            "expires_at": self._clock.now() + self._ttl,
        }

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator[None]:
        """Hold the per-key lock; it is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]


@lru_cache
def get_idempotency_store() -> IdempotencyStore:
    """Process-wide store instance."""
    return IdempotencyStore(ttl=timedelta(hours=settings.idempotency_ttl_hours))


def generate_idempotency_key(
    operation: str,
    entity_id: str,
    params: dict[str, Any] | None = None,
) -> str:
    """Generate a deterministic idempotency key.

    Args:
        operation: Operation name (e.g., "booking_transition", "payment_record")
        entity_id: Primary entity ID
        params: Additional parameters to include in key (target status, client token)

    Returns:
        SHA256 hash of operation + entity + params
    """
    key_data = {
        "operation": operation,
        "entity_id": str(entity_id),
        "params": params or {},
    }
    key_str = json.dumps(key_data, sort_keys=True, default=str)
    return hashlib.sha256(key_str.encode()).hexdigest()


async def run_idempotent(
    store: IdempotencyStore,
    key: str | None,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """Execute ``operation`` once per key and replay its result afterwards.

    Failures are not stored, so a rejected request can be retried with the
    same key once its precondition holds.
    """
    if key is None:
        return await operation()

    async with store.locked(key):
        existing = store.get(key)
        if existing is not None:
            logger.warning(f"Replaying idempotent result for key {key[:12]}")
            return existing

        result = await operation()
        store.set(key, result)
        return result
