"""Replica load balancer over a weighted pool of searchd nodes.

Selection flow
--------------
1. Look up the pool's live-node list in the health cache.
2. On a miss, probe every node by connecting to it. Dead nodes are logged
   and skipped; the surviving indices are written back to the cache.
3. No survivor is fatal (``NoAvailableNodesError``).
4. One survivor is drawn at random, proportionally to its weight.

A node found live in the cache is trusted until the entry expires or is
invalidated. If it died in the meantime, the caller finds out on connect
and should invalidate the pool before resolving again.

Nodes configured with ``active: false`` are never probed nor selected.

An empty live list is never written to the cache, so a pool that was
entirely down is re-probed on the next selection instead of being
reported dead until the entry expires.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from ..cache.base import pool_key_for
from ..cache.config import DEFAULT_KEY_PREFIX
from ..config import ConnectionSettings
from ..core.enums import HealthStatus
from ..exceptions import ConnectivityError, NoAvailableNodesError
from ..logger import get_logger
from ..transport import connect_node
from .health import NodeHealth, PoolHealthResult
from .selector import WeightedNodeSelector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.stdlib import BoundLogger

    from ..cache.base import HealthCheckCache
    from ..config import NodeDescriptor, ProfileConfig
    from ..transport import Connector

logger: BoundLogger = get_logger(__name__)


class ReplicaLoadBalancer:
    """Picks one reachable node of a balanced profile.

    Parameters
    ----------
    cache : HealthCheckCache
        Where live-node lists are remembered between selections.
    connector : Connector
        Opens a connection to a node; used here only to probe.
    connection_settings : ConnectionSettings | None
        Transport settings for probe connections.
    selector : WeightedNodeSelector | None
        Weighted random choice among live nodes.
    key_prefix : str
        Prefix of the health cache keys.

    Examples
    --------
    >>> balancer = ReplicaLoadBalancer(InMemoryHealthCache(ttl_seconds=60))
    >>> node = balancer.select_node(settings.get_profile("search"))
    >>> node.address
    'sphinx-1:9306'
    """

    __slots__ = ("_cache", "_connection_settings", "_connector", "_key_prefix", "_selector")

    def __init__(
        self,
        cache: HealthCheckCache,
        connector: Connector = connect_node,
        connection_settings: ConnectionSettings | None = None,
        selector: WeightedNodeSelector | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self._cache = cache
        self._connector = connector
        self._connection_settings = connection_settings or ConnectionSettings()
        self._selector = selector or WeightedNodeSelector()
        self._key_prefix = key_prefix

    def pool_key(self, nodes: Sequence[NodeDescriptor]) -> str:
        return pool_key_for(nodes, self._key_prefix)

    def select_node(self, profile: ProfileConfig) -> NodeDescriptor:
        """Return one live node of the profile, drawn by weight.

        Raises
        ------
        NoAvailableNodesError
            If every node of the pool failed its probe.
        """
        nodes = profile.nodes
        pool_key = self.pool_key(nodes)

        live = self._cached_live_indices(pool_key, nodes)
        if live:
            logger.debug("Using cached live nodes", pool_key=pool_key, live_indices=sorted(live))
        else:
            live = self.health_check(profile).live_indices
            if not live:
                logger.error("All Sphinx nodes are down", pool_key=pool_key, node_count=len(nodes))
                raise NoAvailableNodesError(pool_key, len(nodes))
            self._cache.put(pool_key, live)

        index = self._selector.select([(i, nodes[i].weight) for i in sorted(live)])
        selected = nodes[index]
        logger.debug("Selected Sphinx node", pool_key=pool_key, index=index, host=selected.host, port=selected.port)
        return selected

    def health_check(self, profile: ProfileConfig) -> PoolHealthResult:
        """Probe every node of the profile now, bypassing the cache."""
        pool_key = self.pool_key(profile.nodes)
        return PoolHealthResult(
            pool_key=pool_key,
            nodes=tuple(self._probe(index, node) for index, node in enumerate(profile.nodes)),
        )

    def invalidate(self, profile: ProfileConfig) -> None:
        """Forget the cached live-node list so the next selection re-probes."""
        pool_key = self.pool_key(profile.nodes)
        self._cache.invalidate(pool_key)
        logger.info("Health cache entry invalidated", pool_key=pool_key)

    def close(self) -> None:
        """Release the health cache (e.g. its Redis connection pool)."""
        self._cache.close()

    def _cached_live_indices(self, pool_key: str, nodes: Sequence[NodeDescriptor]) -> frozenset[int] | None:
        cached = self._cache.get(pool_key)
        if cached is None:
            return None
        # indices outside the node list come from a foreign or corrupt writer
        return frozenset(i for i in cached if 0 <= i < len(nodes) and nodes[i].active)

    def _probe(self, index: int, node: NodeDescriptor) -> NodeHealth:
        if not node.active:
            return NodeHealth(
                index=index,
                host=node.host,
                port=node.port,
                weight=node.weight,
                status=HealthStatus.UNHEALTHY,
                message="Node is inactive",
            )

        started = time.perf_counter()
        try:
            connection = self._connector(node, self._connection_settings)
        except ConnectivityError as e:
            logger.warning("Sphinx node is down", index=index, host=node.host, port=node.port, error=str(e))
            return NodeHealth(
                index=index,
                host=node.host,
                port=node.port,
                weight=node.weight,
                status=HealthStatus.UNHEALTHY,
                message=str(e),
            )

        latency_s = time.perf_counter() - started
        connection.close()
        return NodeHealth(
            index=index,
            host=node.host,
            port=node.port,
            weight=node.weight,
            status=HealthStatus.HEALTHY,
            latency_s=latency_s,
        )
