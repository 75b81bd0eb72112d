"""One query client per named profile, built on first use.

The registry is owned by the composition root and passed to whoever needs
a client; nothing here is a module-level global.

Usage
-----
>>> registry = ClientRegistry.from_settings(SphinxQLSettings())
>>> client = registry.get_instance("search")
>>> client.query("SELECT id FROM products WHERE MATCH(:q)", {":q": "lamp"})
>>> registry.close()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Self

from ..balancing.balancer import ReplicaLoadBalancer
from ..cache.factory import create_health_cache
from ..exceptions import ConnectivityError
from ..logger import get_logger
from ..transport import connect_node
from .debug import DebugQueryClient
from .query import QueryClient

if TYPE_CHECKING:
    from types import TracebackType

    from structlog.stdlib import BoundLogger

    from ..config import ConnectionSettings, NodeDescriptor, ProfileConfig, SphinxQLSettings
    from ..transport import Connector
    from .query import QueryClientProtocol

logger: BoundLogger = get_logger(__name__)


class ClientFactory(Protocol):
    def __call__(
        self,
        node: NodeDescriptor,
        connection_settings: ConnectionSettings | None = None,
        connector: Connector = connect_node,
    ) -> QueryClientProtocol: ...


class ClientRegistry:
    """Lazily builds and keeps one client per profile name.

    Parameters
    ----------
    settings : SphinxQLSettings
        Profiles and connection settings.
    balancer : ReplicaLoadBalancer
        Picks the node of balanced profiles.
    client_factory : ClientFactory
        Client variant to build, e.g. ``QueryClient`` or ``DebugQueryClient``.
    connector : Connector
        Opens node connections for the clients.
    """

    def __init__(
        self,
        settings: SphinxQLSettings,
        balancer: ReplicaLoadBalancer,
        client_factory: ClientFactory = QueryClient,
        connector: Connector = connect_node,
    ) -> None:
        self._settings = settings
        self._balancer = balancer
        self._client_factory = client_factory
        self._connector = connector
        self._clients: dict[str, QueryClientProtocol] = {}

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @classmethod
    def from_settings(cls, settings: SphinxQLSettings, connector: Connector = connect_node) -> Self:
        """Wire a registry from settings alone.

        The health cache backend comes from ``settings.health_cache`` and
        ``settings.debug`` chooses :class:`DebugQueryClient` over
        :class:`QueryClient`.
        """
        balancer = ReplicaLoadBalancer(
            create_health_cache(settings.health_cache),
            connector=connector,
            connection_settings=settings.connection,
            key_prefix=settings.health_cache.key_prefix,
        )
        client_factory: ClientFactory = DebugQueryClient if settings.debug else QueryClient
        return cls(settings, balancer, client_factory=client_factory, connector=connector)

    @property
    def profile_names(self) -> tuple[str, ...]:
        """Profiles that already have a client."""
        return tuple(self._clients)

    def get_instance(self, profile_name: str = "default") -> QueryClientProtocol:
        """Return the client of the profile, building it on first request.

        Raises
        ------
        ProfileNotFoundError
            If the profile is not configured.
        NoAvailableNodesError
            If the profile is balanced and no node answered.
        NodeDownError
            If the chosen node refused the connection.
        """
        client = self._clients.get(profile_name)
        if client is None:
            client = self._build(profile_name)
            self._clients[profile_name] = client
        return client

    def discard(self, profile_name: str) -> None:
        """Close and forget a profile's client so the next request rebuilds it."""
        client = self._clients.pop(profile_name, None)
        if client is not None:
            client.close()

    def close(self) -> None:
        """Close every client, then the balancer's health cache."""
        for profile_name in list(self._clients):
            self.discard(profile_name)
        self._balancer.close()

    def _build(self, profile_name: str) -> QueryClientProtocol:
        profile = self._settings.get_profile(profile_name)

        if not profile.active:
            logger.info("Sphinx profile is inactive, client left unconnected", profile=profile_name)
            return self._client_factory(profile.single_node, self._settings.connection, self._connector)

        node = self._resolve_node(profile)
        client = self._client_factory(node, self._settings.connection, self._connector)
        try:
            client.connect()
        except ConnectivityError:
            if profile.balanced:
                # the cached live list pointed at a dead node
                self._balancer.invalidate(profile)
            raise

        logger.info("Sphinx client ready", profile=profile_name, host=node.host, port=node.port)
        return client

    def _resolve_node(self, profile: ProfileConfig) -> NodeDescriptor:
        if profile.balanced:
            return self._balancer.select_node(profile)
        return profile.single_node
