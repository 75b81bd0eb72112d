"""Replica-aware SphinxQL query client.

This package provides:

- `ClientRegistry`: one query client per named profile, built on first use
- `QueryClient`: batched read queries with client-side parameter substitution
- `ReplicaLoadBalancer`: weighted node selection with a health-check cache

Usage
-----
Single node or balanced pool, same calling code::

    settings = SphinxQLSettings.from_mapping(
        {"profiles": {"search": [{"host": "sphinx-1", "weight": 3}, {"host": "sphinx-2", "weight": 1}]}}
    )
    with ClientRegistry.from_settings(settings) as registry:
        client = registry.get_instance("search")
        client.add_query("SELECT id FROM products WHERE MATCH(:q) LIMIT 20", {":q": "desk lamp"})
        client.add_query("SHOW META")
        hits, meta = client.multi_query()
"""

from .balancing import NodeHealth, PoolHealthResult, ReplicaLoadBalancer, WeightedNodeSelector
from .cache import HealthCacheSettings, InMemoryHealthCache, RedisCacheConfig, RedisHealthCache, create_health_cache
from .client import ClientRegistry, DebugQueryClient, QueryClient, QueryClientProtocol, substitute
from .config import ConnectionSettings, NodeDescriptor, ProfileConfig, SphinxQLSettings
from .core import ClientState, HealthStatus
from .exceptions import (
    ClientNotConnectedError,
    ConfigurationError,
    ConnectivityError,
    NoAvailableNodesError,
    NodeDownError,
    ProfileNotFoundError,
    SphinxQLError,
)
from .transport import SphinxQLConnection, connect_node

__all__ = [
    "ClientNotConnectedError",
    "ClientRegistry",
    "ClientState",
    "ConfigurationError",
    "ConnectionSettings",
    "ConnectivityError",
    "DebugQueryClient",
    "HealthCacheSettings",
    "HealthStatus",
    "InMemoryHealthCache",
    "NoAvailableNodesError",
    "NodeDescriptor",
    "NodeDownError",
    "NodeHealth",
    "PoolHealthResult",
    "ProfileConfig",
    "ProfileNotFoundError",
    "QueryClient",
    "QueryClientProtocol",
    "RedisCacheConfig",
    "RedisHealthCache",
    "ReplicaLoadBalancer",
    "SphinxQLConnection",
    "SphinxQLError",
    "WeightedNodeSelector",
    "connect_node",
    "create_health_cache",
    "substitute",
]
