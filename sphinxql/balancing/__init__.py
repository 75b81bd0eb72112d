"""Replica selection over weighted node pools."""

from __future__ import annotations

from .balancer import ReplicaLoadBalancer
from .health import NodeHealth, PoolHealthResult
from .selector import WeightedNodeSelector

__all__ = [
    "NodeHealth",
    "PoolHealthResult",
    "ReplicaLoadBalancer",
    "WeightedNodeSelector",
]
