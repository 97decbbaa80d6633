"""
Redis cache backend.

Layout (prefix defaults to "shelfsignal:cache"):
  {prefix}:{key}        hash  value (JSON), expires_at (epoch µs), created_at, updated_at
  {prefix}:__expiry__   zset  key → expires_at, scanned by cleanup

Writes replace the hash inside MULTI/EXEC. Conditional deletes and TTL
extensions run as Lua scripts so the expiry check and the mutation are a
single atomic step on the server.
"""

import json
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from cache.store import CacheBackend, CacheEntry
from core.errors import StorageError

_REMOVE_IF_EXPIRED = """
local expires_at = redis.call('HGET', KEYS[1], 'expires_at')
if not expires_at then
  redis.call('ZREM', KEYS[2], ARGV[2])
  return 0
end
if tonumber(expires_at) <= tonumber(ARGV[1]) then
  redis.call('DEL', KEYS[1])
  redis.call('ZREM', KEYS[2], ARGV[2])
  return 1
end
return 0
"""

_EXTEND_IF_LIVE = """
local expires_at = redis.call('HGET', KEYS[1], 'expires_at')
if (not expires_at) or tonumber(expires_at) <= tonumber(ARGV[1]) then
  return 0
end
redis.call('HSET', KEYS[1], 'expires_at', ARGV[2], 'updated_at', ARGV[3])
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[4])
return 1
"""


def _to_micros(moment: datetime) -> int:
    return int(moment.timestamp() * 1_000_000)


def _from_micros(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1_000_000, tz=timezone.utc)


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisCacheBackend(CacheBackend):
    def __init__(self, client: aioredis.Redis, prefix: str = "shelfsignal:cache"):
        self.redis = client
        self.prefix = prefix
        self.index_key = f"{prefix}:__expiry__"
        self._remove_if_expired = client.register_script(_REMOVE_IF_EXPIRED)
        self._extend_if_live = client.register_script(_EXTEND_IF_LIVE)

    def _entry_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def write(self, entry: CacheEntry) -> None:
        try:
            payload = json.dumps(entry.value)
        except (TypeError, ValueError) as exc:
            raise StorageError("write", entry.key, exc) from exc

        expires_at = _to_micros(entry.expires_at)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(self._entry_key(entry.key))
                pipe.hset(
                    self._entry_key(entry.key),
                    mapping={
                        "value": payload,
                        "expires_at": expires_at,
                        "created_at": entry.created_at.isoformat(),
                        "updated_at": entry.updated_at.isoformat(),
                    },
                )
                pipe.zadd(self.index_key, {entry.key: expires_at})
                await pipe.execute()
        except RedisError as exc:
            raise StorageError("write", entry.key, exc) from exc

    async def read(self, key: str) -> CacheEntry | None:
        try:
            raw = await self.redis.hgetall(self._entry_key(key))
        except RedisError as exc:
            raise StorageError("read", key, exc) from exc
        if not raw:
            return None

        fields = {_text(k): _text(v) for k, v in raw.items()}
        try:
            return CacheEntry(
                key=key,
                value=json.loads(fields["value"]),
                expires_at=_from_micros(int(fields["expires_at"])),
                created_at=datetime.fromisoformat(fields["created_at"]),
                updated_at=datetime.fromisoformat(fields["updated_at"]),
            )
        except (KeyError, ValueError) as exc:
            raise StorageError("read", key, exc) from exc

    async def remove(self, key: str) -> None:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(self._entry_key(key))
                pipe.zrem(self.index_key, key)
                await pipe.execute()
        except RedisError as exc:
            raise StorageError("delete", key, exc) from exc

    async def remove_if_expired(self, key: str, now: datetime) -> bool:
        try:
            removed = await self._remove_if_expired(
                keys=[self._entry_key(key), self.index_key],
                args=[_to_micros(now), key],
            )
        except RedisError as exc:
            raise StorageError("evict", key, exc) from exc
        return bool(removed)

    async def extend_if_live(self, key: str, expires_at: datetime, now: datetime) -> bool:
        try:
            extended = await self._extend_if_live(
                keys=[self._entry_key(key), self.index_key],
                args=[_to_micros(now), _to_micros(expires_at), now.isoformat(), key],
            )
        except RedisError as exc:
            raise StorageError("touch", key, exc) from exc
        return bool(extended)

    async def expired_keys(self, now: datetime) -> list[str]:
        try:
            members = await self.redis.zrangebyscore(self.index_key, "-inf", _to_micros(now))
        except RedisError as exc:
            raise StorageError("scan", cause=exc) from exc
        return [_text(m) for m in members]

    async def close(self) -> None:
        await self.redis.aclose()
