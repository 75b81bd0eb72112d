from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError
from redis import ConnectionPool, Redis
from redis.exceptions import RedisError

from ..logger import get_logger
from .base import HealthCacheEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structlog.stdlib import BoundLogger

    from .config import RedisCacheConfig

logger: BoundLogger = get_logger(__name__)


class RedisHealthCache:
    """Health cache shared by every process talking to the same Redis.

    Entries are stored as JSON ``HealthCacheEntry`` documents with a
    Redis-side expiry, so a stale live-node list disappears on its own.
    Redis being unavailable degrades to a cache miss: selection then
    probes every node, which is slower but still correct.

    Parameters
    ----------
    config : RedisCacheConfig
        Connection and driver settings.
    ttl_seconds : int
        Expiry set on every write.
    client : Redis | None
        Pre-built client; when omitted one is created on first use with an
        explicit connection pool.

    Examples
    --------
    >>> cache = RedisHealthCache(RedisCacheConfig(), ttl_seconds=60)
    >>> cache.put("sphinxql:loadbalancer:available_nodes:ab12", [0, 1])
    >>> cache.close()
    """

    def __init__(self, config: RedisCacheConfig, ttl_seconds: int = 60, client: Redis | None = None) -> None:
        self.config = config
        self._ttl_seconds = ttl_seconds
        self._pool: ConnectionPool | None = None
        self._client = client

    @property
    def client(self) -> Redis:
        if self._client is None:
            self._pool = ConnectionPool(**self.config.get_client_kwargs())
            self._client = Redis(connection_pool=self._pool)
            logger.info("Redis health cache client initialized", url=self.config.url)
        return self._client

    def get(self, pool_key: str) -> frozenset[int] | None:
        try:
            raw = self.client.get(pool_key)
        except RedisError as e:
            logger.warning("Health cache read failed, treating as miss", pool_key=pool_key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            entry = HealthCacheEntry.model_validate_json(raw)  # type: ignore[arg-type]
        except ValidationError as e:
            logger.warning("Discarding malformed health cache entry", pool_key=pool_key, error=str(e))
            return None

        return entry.live_indices

    def put(self, pool_key: str, live_indices: Iterable[int]) -> None:
        entry = HealthCacheEntry(pool_key=pool_key, live_indices=frozenset(live_indices))
        try:
            self.client.set(pool_key, entry.model_dump_json(), ex=self._ttl_seconds)
        except RedisError as e:
            logger.warning("Health cache write failed", pool_key=pool_key, error=str(e))

    def invalidate(self, pool_key: str) -> None:
        try:
            self.client.delete(pool_key)
        except RedisError as e:
            logger.warning("Health cache invalidation failed", pool_key=pool_key, error=str(e))

    def close(self) -> None:
        """Close the Redis client and its connection pool."""
        if self._client is not None:
            self._client.close()
            self._client = None

        if self._pool is not None:
            self._pool.disconnect()
            self._pool = None

        logger.info("Redis health cache client closed")
