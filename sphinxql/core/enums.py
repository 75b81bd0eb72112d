from __future__ import annotations

from enum import StrEnum


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ClientState(StrEnum):
    """Lifecycle of a query client's single connection."""

    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    FAILED = "failed"
    CLOSED = "closed"
