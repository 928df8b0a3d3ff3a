"""Pluggable key/value caches with per-entry expiry."""

import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis

from recipehub.config import get_settings
from recipehub.logging_config import get_logger

logger = get_logger(__name__)


class CacheBackend(ABC):
    """Async cache interface used by outbound API connectors."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass


@dataclass
class _Entry:
    value: Any
    expires_at: float


class InMemoryTTLCache(CacheBackend):
    """
    Process-local cache.

    Expiry is checked on read against ``clock``; an expired entry is dropped
    when it is read and is otherwise left until overwritten.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCache(CacheBackend):
    """Redis-backed cache storing JSON-encoded values with ``SETEX``."""

    def __init__(self, client: Any, prefix: str = "recipehub:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "recipehub:") -> "RedisCache":
        return cls(redis.from_url(url, decode_responses=True), prefix=prefix)

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(self._prefix + key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: float) -> None:
        await self._client.setex(self._prefix + key, max(1, int(ttl)), json.dumps(value))

    async def delete(self, key: str) -> None:
        await self._client.delete(self._prefix + key)

    async def clear(self) -> None:
        keys = [key async for key in self._client.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._client.delete(*keys)


_default_cache: CacheBackend | None = None


def get_cache() -> CacheBackend:
    """Get the process-wide cache selected by ``cache_backend``."""
    global _default_cache
    if _default_cache is None:
        settings = get_settings()
        if settings.cache_backend.lower() == "redis":
            logger.info("Using Redis cache backend")
            _default_cache = RedisCache.from_url(settings.redis_url)
        else:
            _default_cache = InMemoryTTLCache()
    return _default_cache
