"""Core module exports."""

from __future__ import annotations

from .enums import ClientState, HealthStatus

__all__ = [
    "ClientState",
    "HealthStatus",
]
