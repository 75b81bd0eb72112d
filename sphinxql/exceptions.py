from __future__ import annotations


class SphinxQLError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(SphinxQLError):
    """Connection settings are missing or malformed."""


class ProfileNotFoundError(ConfigurationError):
    def __init__(self, profile: str) -> None:
        super().__init__(f"Expected sphinx settings not defined for profile {profile!r}")
        self.profile = profile


class ConnectivityError(SphinxQLError):
    """The search service cannot be reached."""


class NodeDownError(ConnectivityError):
    """A single node refused or failed the connection attempt."""

    def __init__(self, host: str, port: int, reason: str | None = None) -> None:
        message = f"Sphinx ({host}:{port}) is down!"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.host = host
        self.port = port
        self.reason = reason


class NoAvailableNodesError(ConnectivityError):
    """Every node of a balanced pool failed its probe."""

    def __init__(self, pool_key: str, node_count: int) -> None:
        super().__init__(f"No reachable Sphinx node in pool {pool_key} ({node_count} probed)")
        self.pool_key = pool_key
        self.node_count = node_count


class ClientNotConnectedError(SphinxQLError):
    """The client has no active connection (inactive profile, failed or closed)."""
