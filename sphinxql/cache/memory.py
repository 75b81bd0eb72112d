from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from ..logger import get_logger
from .base import HealthCacheEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from structlog.stdlib import BoundLogger

logger: BoundLogger = get_logger(__name__)


class InMemoryHealthCache:
    """Process-local health cache with a per-entry time-to-live.

    Parameters
    ----------
    ttl_seconds : float
        How long a stored live-node list is trusted.
    clock : Callable[[], float]
        Monotonic time source, injectable for tests.

    Examples
    --------
    >>> cache = InMemoryHealthCache(ttl_seconds=60)
    >>> cache.put("pool", [0, 2])
    >>> cache.get("pool")
    frozenset({0, 2})
    """

    __slots__ = ("_clock", "_entries", "_lock", "_ttl_seconds")

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, HealthCacheEntry]] = {}
        self._lock = threading.Lock()

    def get(self, pool_key: str) -> frozenset[int] | None:
        with self._lock:
            stored = self._entries.get(pool_key)
            if stored is None:
                return None

            expires_at, entry = stored
            if self._clock() >= expires_at:
                del self._entries[pool_key]
                logger.debug("Health cache entry expired", pool_key=pool_key)
                return None

            return entry.live_indices

    def put(self, pool_key: str, live_indices: Iterable[int]) -> None:
        entry = HealthCacheEntry(pool_key=pool_key, live_indices=frozenset(live_indices))
        with self._lock:
            self._entries[pool_key] = (self._clock() + self._ttl_seconds, entry)

    def invalidate(self, pool_key: str) -> None:
        with self._lock:
            self._entries.pop(pool_key, None)

    def close(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
