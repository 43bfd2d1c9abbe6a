"""
Cache-aside layer for the "list all packages" read path.

A single Redis key holds the serialized catalog. Any mutation of the catalog
deletes that key; the next read repopulates it from the store. Redis is never
the source of truth: every cache failure is logged and treated as a miss.
"""
from __future__ import annotations

import logging
from typing import List, Optional

import redis
from pydantic import TypeAdapter, ValidationError

from vcpkg_catalog.domain.models import Package

logger = logging.getLogger(__name__)

ALL_PACKAGES_KEY = "all_packages"
DEFAULT_TTL_SECONDS = 600

_PACKAGE_LIST = TypeAdapter(List[Package])


def create_redis_client(host: str = "localhost", port: int = 6379, timeout: float = 2.0) -> redis.Redis:
    """Build a Redis client. No connection is made until the first command."""
    return redis.Redis(
        host=host,
        port=port,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


class CatalogCache:
    def __init__(
        self,
        client: redis.Redis,
        key: str = ALL_PACKAGES_KEY,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self.client = client
        self.key = key
        self.ttl_seconds = ttl_seconds

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis is unavailable, catalog reads will bypass the cache: {e}")
            return False

    def get(self) -> Optional[List[Package]]:
        """
        Return the cached catalog, or None on a miss.

        Unreadable payloads count as misses; an empty cached list is a hit.
        """
        try:
            payload = self.client.get(self.key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for '{self.key}': {e}")
            return None
        if payload is None:
            logger.debug(f"Cache miss for '{self.key}'")
            return None
        try:
            return _PACKAGE_LIST.validate_json(payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry '{self.key}': {e}")
            return None

    def put(self, packages: List[Package], ttl_seconds: Optional[int] = None) -> bool:
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        try:
            self.client.set(self.key, _PACKAGE_LIST.dump_json(packages), ex=ttl)
        except redis.RedisError as e:
            logger.warning(f"Cache write failed for '{self.key}': {e}")
            return False
        return True

    def invalidate(self) -> bool:
        try:
            self.client.delete(self.key)
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for '{self.key}': {e}")
            return False
        return True

    def close(self) -> None:
        try:
            self.client.close()
        except redis.RedisError as e:
            logger.debug(f"Error closing Redis client: {e}")
