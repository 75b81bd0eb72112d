"""Health-check cache backends."""

from __future__ import annotations

from .base import HealthCacheEntry, HealthCheckCache, pool_key_for
from .config import HealthCacheSettings, RedisCacheConfig, RedisConnectionSettings, RedisDriverSettings
from .factory import create_health_cache
from .memory import InMemoryHealthCache
from .redis import RedisHealthCache

__all__ = [
    # Backends
    "HealthCheckCache",
    "InMemoryHealthCache",
    "RedisHealthCache",
    # Factory
    "create_health_cache",
    # Types
    "HealthCacheEntry",
    "pool_key_for",
    # Config
    "HealthCacheSettings",
    "RedisCacheConfig",
    "RedisConnectionSettings",
    "RedisDriverSettings",
]
