from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..config import NodeDescriptor


class HealthCacheEntry(BaseModel):
    """Indices of the nodes of one pool that answered their last probe."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pool_key: str = Field(min_length=1)
    live_indices: frozenset[int] = Field(default_factory=frozenset)
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthCheckCache(Protocol):
    """Remembers which nodes of a pool were reachable.

    Entries are hints: a node cached as live may have died since, and the
    next connect to it is what finds out.
    """

    def get(self, pool_key: str) -> frozenset[int] | None: ...

    def put(self, pool_key: str, live_indices: Iterable[int]) -> None: ...

    def invalidate(self, pool_key: str) -> None: ...

    def close(self) -> None: ...


def pool_key_for(nodes: Sequence[NodeDescriptor], prefix: str) -> str:
    """Derive the cache key identifying a pool from its node list.

    Node order is part of the identity because cached entries store
    indices into the list.
    """
    canonical = json.dumps([[node.host, node.port, node.weight] for node in nodes], separators=(",", ":"))
    digest = hashlib.sha1(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"{prefix}:{digest}"
