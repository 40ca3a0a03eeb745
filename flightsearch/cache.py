"""
Response cache for upstream API payloads.

Every successful upstream response is stored under a key derived from the
endpoint and the canonicalized query parameters, so identical searches in
the TTL window are answered without spending API quota.

Two stores implement the same get/set/forget interface:
- MemoryCacheStore: bounded in-process map with per-entry expiry
- RedisCacheStore: shared store for multi-process deployments

The proxy service only talks to the ``CacheStore`` interface.
"""

import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import redis

from flightsearch.config import CacheConfig
from flightsearch.models import CacheEntry, JSONDocument, strip_reserved

logger = logging.getLogger(__name__)

KEY_PREFIX = 'aviationstack_'


def make_cache_key(endpoint: str, params: Mapping[str, Any]) -> str:
    """
    Build the cache key for an endpoint and its query parameters.

    The credential and the debug flag never take part in the key, and
    parameters are sorted so their order does not matter.
    """
    endpoint = getattr(endpoint, 'value', endpoint)
    canonical = json.dumps(strip_reserved(params), sort_keys=True, separators=(',', ':'))
    digest = hashlib.md5(canonical.encode('utf-8')).hexdigest()
    return f'{KEY_PREFIX}{endpoint}_{digest}'


class CacheStore(ABC):
    """Key-value store with per-entry TTL."""

    @abstractmethod
    def get(self, key: str) -> Optional[JSONDocument]:
        """Return the cached payload, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, payload: JSONDocument, ttl_seconds: int) -> None:
        """Store a payload, replacing any previous entry."""

    @abstractmethod
    def forget(self, key: str) -> None:
        """Remove an entry if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry owned by this store."""

    @property
    @abstractmethod
    def stats(self) -> dict:
        """Store statistics for the status endpoint."""


class MemoryCacheStore(CacheStore):
    """
    Thread-safe in-memory cache.

    Entries expire lazily on read. When the store grows past
    ``max_entries`` the oldest 10% are evicted.
    """

    def __init__(self, max_entries: int = 500):
        self.max_entries = max_entries

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[JSONDocument]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if not entry.is_expired():
                    self._hits += 1
                    return entry.payload
                # Expired
                del self._entries[key]
            self._misses += 1
        return None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Raw entry lookup without expiry checks or statistics."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, payload: JSONDocument, ttl_seconds: int) -> None:
        entry = CacheEntry(key=key, payload=payload, ttl_seconds=ttl_seconds)

        with self._lock:
            self._entries[key] = entry

            # Evict if over capacity
            if len(self._entries) > self.max_entries:
                self._evict_oldest()

    def _evict_oldest(self) -> None:
        """Remove oldest entries when over capacity."""
        entries = sorted(
            self._entries.items(),
            key=lambda x: x[1].stored_at
        )
        # Remove oldest 10%
        to_remove = max(1, len(entries) // 10)
        for key, _ in entries[:to_remove]:
            del self._entries[key]
        logger.debug(f'Evicted {to_remove} cache entries')

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                'backend': 'memory',
                'entries': len(self._entries),
                'max_entries': self.max_entries,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0,
            }


class RedisCacheStore(CacheStore):
    """
    Redis-backed cache shared between worker processes.

    Payloads are stored as JSON strings with ``SETEX`` so Redis handles
    expiry. A Redis outage degrades to cache misses instead of failing
    the request.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.redis_client = client or redis.from_url(redis_url, decode_responses=True)

        self._hits = 0
        self._misses = 0
        self._errors = 0
        self._lock = threading.Lock()

    def _count(self, attr: str) -> None:
        with self._lock:
            setattr(self, attr, getattr(self, attr) + 1)

    def get(self, key: str) -> Optional[JSONDocument]:
        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.warning(f'Redis get failed for {key}: {e}')
            self._count('_errors')
            self._count('_misses')
            return None

        if raw is None:
            self._count('_misses')
            return None

        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning(f'Discarding undecodable cache entry {key}')
            self.forget(key)
            self._count('_misses')
            return None

        self._count('_hits')
        return payload

    def set(self, key: str, payload: JSONDocument, ttl_seconds: int) -> None:
        try:
            self.redis_client.setex(key, ttl_seconds, json.dumps(payload))
        except redis.RedisError as e:
            logger.warning(f'Redis set failed for {key}: {e}')
            self._count('_errors')

    def forget(self, key: str) -> None:
        try:
            self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.warning(f'Redis delete failed for {key}: {e}')
            self._count('_errors')

    def clear(self) -> None:
        try:
            keys = list(self.redis_client.scan_iter(match=f'{KEY_PREFIX}*'))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f'Redis clear failed: {e}')
            self._count('_errors')

    @property
    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                'backend': 'redis',
                'hits': self._hits,
                'misses': self._misses,
                'errors': self._errors,
                'hit_rate': self._hits / total if total > 0 else 0,
            }


def build_cache_store(config: CacheConfig) -> CacheStore:
    """Create the cache store selected by configuration."""
    if config.backend == 'redis':
        logger.info(f'Using Redis response cache at {config.redis_url}')
        return RedisCacheStore(redis_url=config.redis_url)

    logger.info(f'Using in-memory response cache (max {config.max_entries} entries)')
    return MemoryCacheStore(max_entries=config.max_entries)
