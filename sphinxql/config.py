"""Configuration models for SphinxQL connection profiles.

A profile is either one node or a balanced pool of weighted nodes::

    SPHINXQL_PROFILES='{
        "default": {"host": "127.0.0.1", "port": 9306},
        "search": [
            {"host": "sphinx-1", "port": 9306, "weight": 3},
            {"host": "sphinx-2", "port": 9306, "weight": 1}
        ]
    }'

- `NodeDescriptor`: address, port and selection weight of one node
- `ProfileConfig`: one node, or an ordered pool of nodes to balance over
- `SphinxQLSettings`: every named profile plus connection and cache settings
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .cache.config import HealthCacheSettings
from .exceptions import ConfigurationError, ProfileNotFoundError


class NodeDescriptor(BaseModel):
    """One searchd instance reachable over the MySQL protocol.

    ``server`` is accepted as an alias of ``host`` so legacy
    ``sphinx.config`` dumps load unchanged.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    host: str = Field(validation_alias=AliasChoices("host", "server"), min_length=1)
    port: int = Field(default=9306, ge=1, le=65535)
    weight: int = Field(default=1, ge=0)
    active: bool = Field(default=True, description="Inactive nodes are never probed or selected")

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class ProfileConfig(BaseModel):
    """Connection parameters of one named profile.

    Examples
    --------
    >>> ProfileConfig.model_validate({"host": "localhost", "port": 9306}).balanced
    False
    >>> ProfileConfig.model_validate([{"host": "a"}, {"host": "b"}]).balanced
    True
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    active: bool = Field(default=True, description="Connect at all (False leaves the client idle)")
    nodes: tuple[NodeDescriptor, ...] = Field(min_length=1)
    balanced: bool = Field(default=False, description="Pick a node through the load balancer")

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, data: Any) -> Any:
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            return {"nodes": list(data), "balanced": True}

        if isinstance(data, Mapping) and "nodes" not in data:
            node = dict(data)
            active = node.get("active", True)
            return {"active": active, "nodes": [node], "balanced": False}

        if isinstance(data, Mapping) and "balanced" not in data:
            nodes = data["nodes"]
            return {**data, "balanced": isinstance(nodes, Sequence) and len(nodes) > 1}

        return data

    @model_validator(mode="after")
    def _inherit_node_activity(self) -> Self:
        # a pool without a profile-level flag is live while any node is
        if "active" not in self.model_fields_set and not any(node.active for node in self.nodes):
            return self.model_copy(update={"active": False})
        return self

    @property
    def single_node(self) -> NodeDescriptor:
        return self.nodes[0]


class ConnectionSettings(BaseModel):
    """Transport settings applied to every node connection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    connect_timeout: float = Field(default=1.0, gt=0, le=60.0, description="Seconds to wait for the TCP handshake")
    read_timeout: float | None = Field(default=30.0, gt=0, description="Seconds to wait for a query result")
    charset: str = Field(default="utf8", description="Connection character set")


class SphinxQLSettings(BaseSettings):
    """Everything needed to build query clients.

    Read from ``SPHINXQL_*`` environment variables (nested fields use ``__``)
    or built directly with ``SphinxQLSettings.model_validate(data)``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SPHINXQL_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    health_cache: HealthCacheSettings = Field(default_factory=HealthCacheSettings)
    debug: bool = Field(default=False, description="Build instrumented debug clients")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """Validate a plain mapping (e.g. a parsed config file).

        Keys missing from the mapping still fall back to the environment.

        Raises
        ------
        ConfigurationError
            If any profile is malformed.
        """
        try:
            return cls(**dict(data))
        except ValidationError as e:
            raise ConfigurationError(f"You must define valid connection params for sphinx: {e}") from e

    def get_profile(self, name: str) -> ProfileConfig:
        """Return the named profile.

        Raises
        ------
        ProfileNotFoundError
            If no profile with this name is configured.
        """
        try:
            return self.profiles[name]
        except KeyError:
            raise ProfileNotFoundError(name) from None
