from __future__ import annotations

from .base import HealthCheckCache
from .config import HealthCacheSettings
from .memory import InMemoryHealthCache
from .redis import RedisHealthCache


def create_health_cache(settings: HealthCacheSettings) -> HealthCheckCache:
    """Create the health cache backend named by the settings.

    Parameters
    ----------
    settings : HealthCacheSettings
        ``backend="redis"`` shares live-node lists across processes;
        ``backend="memory"`` keeps them per process.

    Returns
    -------
    HealthCheckCache
        Either RedisHealthCache or InMemoryHealthCache.

    Examples
    --------
    >>> cache = create_health_cache(HealthCacheSettings(backend="memory", ttl_seconds=30))
    """
    if settings.backend == "redis":
        return RedisHealthCache(settings.redis, ttl_seconds=settings.ttl_seconds)
    return InMemoryHealthCache(ttl_seconds=settings.ttl_seconds)
