from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DEFAULT_KEY_PREFIX = "sphinxql:loadbalancer:available_nodes"


class RedisConnectionSettings(BaseModel):
    """Redis connection settings."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    db: int = Field(default=0, ge=0, le=15, description="Redis database number")
    username: str | None = Field(default=None, description="Redis username for ACL (Redis 6+)")
    password: SecretStr | None = Field(default=None, description="Redis password for authentication")


class RedisDriverSettings(BaseModel):
    """Redis driver-specific settings.

    Timeouts are short on purpose: the health cache is a hint, and a slow
    Redis must not hold up node selection longer than probing would.
    """

    model_config = ConfigDict(extra="forbid")

    socket_timeout: float = Field(default=0.5, ge=0.05, le=60.0, description="Socket timeout in seconds")
    socket_connect_timeout: float = Field(
        default=0.5,
        ge=0.05,
        le=60.0,
        description="Socket connect timeout in seconds",
    )
    socket_keepalive: bool = Field(default=True, description="Enable TCP keepalive")
    decode_responses: bool = Field(default=True, description="Decode responses to strings instead of bytes")


class RedisCacheConfig(BaseModel):
    """Where the shared health cache lives."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    connection: RedisConnectionSettings = Field(default_factory=RedisConnectionSettings)
    driver: RedisDriverSettings = Field(default_factory=RedisDriverSettings)

    @property
    def url(self) -> str:
        """Build Redis connection URL (password masked)."""
        auth = ""
        if self.connection.username and self.connection.password:
            auth = f"{self.connection.username}:***@"
        elif self.connection.password:
            auth = ":***@"
        return f"redis://{auth}{self.connection.host}:{self.connection.port}/{self.connection.db}"

    def get_client_kwargs(self) -> dict[str, Any]:
        """Get kwargs for ``redis.Redis(**kwargs)``."""
        password = self.connection.password.get_secret_value() if self.connection.password else None
        return {
            **self.connection.model_dump(exclude={"password"}),
            "password": password,
            **self.driver.model_dump(),
        }


class HealthCacheSettings(BaseModel):
    """How long and where the list of reachable nodes is remembered."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    backend: Literal["memory", "redis"] = Field(default="memory", description="Health cache backend")
    ttl_seconds: int = Field(default=60, ge=1, le=86_400, description="Lifetime of a cached live-node list")
    key_prefix: str = Field(
        default=DEFAULT_KEY_PREFIX,
        min_length=1,
        description="Prefix for health cache keys",
    )
    redis: RedisCacheConfig = Field(default_factory=RedisCacheConfig)
