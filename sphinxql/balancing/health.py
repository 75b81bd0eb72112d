from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..core.enums import HealthStatus


class NodeHealth(BaseModel):
    """Outcome of probing one node of a pool."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    host: str
    port: int
    weight: int
    status: HealthStatus
    latency_s: float | None = None
    message: str | None = None

    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class PoolHealthResult(BaseModel):
    """Health of every node of a pool, probed now.

    HEALTHY when every node answered, DEGRADED when some did, UNHEALTHY
    when none did.
    """

    model_config = ConfigDict(frozen=True)

    pool_key: str
    nodes: tuple[NodeHealth, ...]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def healthy_node_count(self) -> int:
        return sum(1 for node in self.nodes if node.is_healthy())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> HealthStatus:
        healthy = self.healthy_node_count
        if healthy == 0:
            return HealthStatus.UNHEALTHY
        if healthy < len(self.nodes):
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    @property
    def live_indices(self) -> frozenset[int]:
        return frozenset(node.index for node in self.nodes if node.is_healthy())

    @property
    def is_operational(self) -> bool:
        """At least one node can serve queries."""
        return self.healthy_node_count > 0
