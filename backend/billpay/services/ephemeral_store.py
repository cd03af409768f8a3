"""Short-lived keyed storage with store-enforced expiry.

Used for password reset bookkeeping. Two implementations share one interface:
Redis for deployments, and a lock-protected in-process store for local runs
without Redis and for tests.
"""

import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

import redis

logger = logging.getLogger(__name__)


class EphemeralStore(ABC):
    """String values under string keys, each with a TTL in seconds."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value, or None if missing or expired."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def pop(self, key: str) -> str | None:
        """Atomically return and remove the value.

        Of several concurrent callers for the same key, at most one gets the value.
        """

    @abstractmethod
    def ttl(self, key: str) -> int | None:
        """Remaining lifetime in whole seconds, or None if the key is missing."""


class RedisEphemeralStore(EphemeralStore):
    """Ephemeral store on Redis (``SET EX`` / ``GETDEL``; GETDEL needs Redis 6.2+)."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._redis.set(key, value, ex=ttl_seconds)

    def get(self, key: str) -> str | None:
        return self._redis.get(key)

    def delete(self, key: str) -> None:
        self._redis.delete(key)

    def pop(self, key: str) -> str | None:
        return self._redis.getdel(key)

    def ttl(self, key: str) -> int | None:
        remaining = self._redis.ttl(key)
        # -2: no such key, -1: key without expiry
        if remaining == -2:
            return None
        return remaining


@dataclass(slots=True)
class _Entry:
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryEphemeralStore(EphemeralStore):
    """Process-local ephemeral store.

    Expired entries are dropped lazily on access and swept on every write.
    Not shared between worker processes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[str, _Entry] = {}

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        with self._lock:
            self._sweep(now)
            self._entries[key] = _Entry(value=value, expires_at=now + ttl_seconds)

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def pop(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            del self._entries[key]
            return entry.value

    def ttl(self, key: str) -> int | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return math.ceil(entry.expires_at - self._clock())

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"ephemeral store: swept {len(expired)} expired keys")
