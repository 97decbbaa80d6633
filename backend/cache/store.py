"""
Result Cache — TTL key-value store for analysis payloads.

Semantics:
  - set: stores value with expires_at = now + ttl, replacing any prior entry
  - get: returns the value only while now < expires_at; an expired entry
    is deleted on read (lazy eviction) and reported as a miss (None)
  - delete: idempotent
  - touch: pushes expiry of a live entry forward, value untouched
  - cleanup: sweeps expired entries; each candidate is re-checked at
    deletion time so an entry set during the sweep survives

Storage errors on get are logged and treated as a miss so the caller can
recompute. Every other operation propagates StorageError.
"""

import copy
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from core.errors import StorageError

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 21600  # 6 hours

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    def is_expired(self, now: datetime) -> bool:
        # expires_at is an exclusive upper bound
        return now >= self.expires_at


# ── Backends ──────────────────────────────────────────────────────────────


class CacheBackend(ABC):
    """
    Storage handle used by CacheStore.

    Conditional operations (remove_if_expired, extend_if_live) must check
    and act atomically with respect to concurrent writes on the same key.
    """

    @abstractmethod
    async def write(self, entry: CacheEntry) -> None: ...

    @abstractmethod
    async def read(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    async def remove(self, key: str) -> None: ...

    @abstractmethod
    async def remove_if_expired(self, key: str, now: datetime) -> bool: ...

    @abstractmethod
    async def extend_if_live(self, key: str, expires_at: datetime, now: datetime) -> bool: ...

    @abstractmethod
    async def expired_keys(self, now: datetime) -> list[str]: ...

    async def close(self) -> None:
        """Release connections. No-op unless the backend holds any."""


class MemoryCacheBackend(CacheBackend):
    """
    In-process backend guarded by a threading lock.

    Values are deep-copied on the way in and out, so callers never share
    mutable state with the cache.
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def write(self, entry: CacheEntry) -> None:
        stored = replace(entry, value=copy.deepcopy(entry.value))
        with self._lock:
            self._entries[entry.key] = stored

    async def read(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        return replace(entry, value=copy.deepcopy(entry.value))

    async def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def remove_if_expired(self, key: str, now: datetime) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_expired(now):
                return False
            del self._entries[key]
            return True

    async def extend_if_live(self, key: str, expires_at: datetime, now: datetime) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(now):
                return False
            self._entries[key] = replace(entry, expires_at=expires_at, updated_at=now)
            return True

    async def expired_keys(self, now: datetime) -> list[str]:
        with self._lock:
            return [key for key, entry in self._entries.items() if entry.is_expired(now)]


# ── Store ─────────────────────────────────────────────────────────────────


def _ttl_delta(ttl: float | timedelta) -> timedelta:
    delta = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
    if delta < timedelta(0):
        raise ValueError("ttl must be non-negative")
    return delta


class CacheStore:
    """TTL cache over a pluggable backend."""

    def __init__(
        self,
        backend: CacheBackend,
        default_ttl: float | timedelta = DEFAULT_TTL_SECONDS,
        clock: Clock = utcnow,
    ):
        self.backend = backend
        self.default_ttl = _ttl_delta(default_ttl)
        self.clock = clock

    async def set(self, key: str, value: Any, ttl: float | timedelta | None = None) -> CacheEntry:
        """
        Store {value} under {key} for {ttl} (seconds or timedelta).

        Raises:
            ValueError for a None value or a negative ttl.
            StorageError if the backend rejects the write.
        """
        if value is None:
            raise ValueError("None cannot be cached, it is the miss marker")
        delta = self.default_ttl if ttl is None else _ttl_delta(ttl)
        now = self.clock()
        entry = CacheEntry(key=key, value=value, expires_at=now + delta, created_at=now, updated_at=now)
        try:
            await self.backend.write(entry)
        except StorageError as exc:
            logger.error("cache.set_failed", key=key, error=str(exc))
            raise
        logger.info("cache.set", key=key, expires_at=entry.expires_at.isoformat(), ttl=f"{delta.total_seconds():g}s")
        return entry

    async def get(self, key: str) -> Any | None:
        """Value for {key}, or None on miss, expiry, or storage failure."""
        try:
            entry = await self.backend.read(key)
            if entry is None:
                logger.info("cache.miss", key=key, reason="not_found")
                return None

            now = self.clock()
            if entry.is_expired(now):
                await self.backend.remove_if_expired(key, now)
                logger.info(
                    "cache.miss",
                    key=key,
                    reason="expired",
                    expires_at=entry.expires_at.isoformat(),
                    now=now.isoformat(),
                )
                return None
        except StorageError as exc:
            logger.warning("cache.get_failed", key=key, error=str(exc))
            return None

        logger.info("cache.hit", key=key, expires_at=entry.expires_at.isoformat())
        return entry.value

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> None:
        await self.backend.remove(key)
        logger.info("cache.deleted", key=key)

    async def touch(self, key: str, ttl: float | timedelta | None = None) -> bool:
        """Extend a live entry's expiry. False, with no side effect, if absent or expired."""
        delta = self.default_ttl if ttl is None else _ttl_delta(ttl)
        now = self.clock()
        extended = await self.backend.extend_if_live(key, now + delta, now)
        if extended:
            logger.info("cache.touch", key=key, expires_at=(now + delta).isoformat())
        return extended

    async def cleanup(self) -> int:
        """Delete every expired entry. Returns how many were removed."""
        candidates = await self.backend.expired_keys(self.clock())
        if not candidates:
            logger.info("cache.cleanup", deleted=0)
            return 0

        deleted = 0
        for key in candidates:
            # Re-read the clock: the entry may have been replaced since the scan
            if await self.backend.remove_if_expired(key, self.clock()):
                deleted += 1

        logger.info("cache.cleanup", candidates=len(candidates), deleted=deleted)
        return deleted

    async def close(self) -> None:
        await self.backend.close()


def create_cache_store(
    settings,
    clock: Clock = utcnow,
    memory_backend: MemoryCacheBackend | None = None,
) -> CacheStore:
    """
    Build the store selected by settings.cache_backend.

    Pass {memory_backend} to share one in-process backend between stores.
    """
    if settings.cache_backend == "redis":
        import redis.asyncio as aioredis

        from cache.redis_backend import RedisCacheBackend

        backend: CacheBackend = RedisCacheBackend(
            aioredis.from_url(settings.redis_url),
            prefix=settings.cache_key_prefix,
        )
    else:
        backend = memory_backend if memory_backend is not None else MemoryCacheBackend()
    return CacheStore(backend, default_ttl=settings.analysis_cache_ttl_seconds, clock=clock)
