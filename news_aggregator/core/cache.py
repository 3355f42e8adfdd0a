"""
Cache backends.

Values are JSON-compatible python objects. Backends that can group keys
under tags report ``supports_tags``; callers pick their invalidation
strategy from that flag once.
"""
import json
import threading
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import redis
import structlog

from ..config import Settings, get_settings
from ..exceptions import CacheBackendError

logger = structlog.get_logger(__name__)

REDIS_SOCKET_TIMEOUT = 5


class CacheBackend(ABC):
    supports_tags: bool = False

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def put(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        pass

    @abstractmethod
    def forget(self, key: str) -> None:
        pass

    def forget_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.forget(key)

    def flush_tags(self, tags: Iterable[str]) -> None:
        raise CacheBackendError(
            f"{self.__class__.__name__} does not support tagged invalidation",
            error_code="CACHE_TAGS_UNSUPPORTED",
        )


class MemoryCacheBackend(CacheBackend):
    """Per-process TTL store. Tags are accepted on put and ignored."""

    supports_tags = False

    def __init__(self, timer: Callable[[], float] = time.monotonic):
        self._timer = timer
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= self._timer():
                del self._entries[key]
                return None
        return json.loads(payload)

    def put(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        # Serialized so callers never share mutable state with the store
        payload = json.dumps(value)
        with self._lock:
            self._entries[key] = (self._timer() + ttl, payload)

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def forget_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheBackend(CacheBackend):
    """Redis store; each tag is a set of the keys written under it."""

    supports_tags = True

    def __init__(self, client: redis.Redis, prefix: str = "news_aggregator"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "news_aggregator") -> "RedisCacheBackend":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
        )
        return cls(client, prefix=prefix)

    def tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    def get(self, key: str) -> Optional[Any]:
        try:
            payload = self.client.get(key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis get failed: {e}", error_code="CACHE_READ_FAILED") from e
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except ValueError as e:
            raise CacheBackendError(f"Unreadable cache entry {key}", error_code="CACHE_READ_FAILED") from e

    def put(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        try:
            self.client.set(key, json.dumps(value), ex=ttl)
            for tag in tags:
                self.client.sadd(self.tag_key(tag), key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis put failed: {e}", error_code="CACHE_WRITE_FAILED") from e

    def forget(self, key: str) -> None:
        self.forget_many([key])

    def forget_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis delete failed: {e}", error_code="CACHE_DELETE_FAILED") from e

    def flush_tags(self, tags: Iterable[str]) -> None:
        try:
            for tag in tags:
                tag_key = self.tag_key(tag)
                members = self.client.smembers(tag_key)
                if members:
                    self.client.delete(*members)
                self.client.delete(tag_key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis tag flush failed: {e}", error_code="CACHE_DELETE_FAILED") from e


def build_cache_backend(settings: Settings) -> CacheBackend:
    if settings.cache_backend == "redis":
        logger.info("Using redis cache backend", redis_url=settings.redis_url)
        return RedisCacheBackend.from_url(settings.redis_url, prefix=settings.cache_prefix)

    logger.info("Using in-memory cache backend")
    return MemoryCacheBackend()


@lru_cache()
def get_cache_backend() -> CacheBackend:
    return build_cache_backend(get_settings())
