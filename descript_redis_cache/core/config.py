"""
Cache configuration management with environment variables.

This module provides the immutable per-instance cache options and the
Pydantic BaseSettings used to build them from the environment, with
validation and default values.
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_KEY_TTL = 60 * 60 * 24
DEFAULT_GENERATION = 1
DEFAULT_READ_TIMEOUT_MS = 100
DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class SerializationPolicy(str, Enum):
    """Projection applied to values before they are persisted."""

    VERBATIM = "verbatim"
    HTTP_RESPONSE = "http_response"


class RedisNode(BaseModel):
    """Host/port pair of a cluster startup node or a sentinel."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=6379, ge=1, le=65535)

    @classmethod
    def parse(cls, value: str) -> "RedisNode":
        """
        Parse a ``host:port`` string.

        Args:
            value: Node address, port optional

        Returns:
            Parsed node

        Raises:
            ValueError: If the port is not an integer
        """
        host, _, port = value.strip().rpartition(":")
        if not host:
            return cls(host=port)
        return cls(host=host, port=int(port))


class RedisConnectionOptions(BaseModel):
    """
    Backing-store connection descriptor.

    Exactly one topology is used: a single node (``url``), a cluster
    (``startup_nodes``) or a sentinel-managed primary/replica set
    (``sentinels`` + ``service_name``).
    """

    model_config = ConfigDict(frozen=True)

    url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for single-node deployments",
    )
    startup_nodes: tuple[RedisNode, ...] = Field(
        default=(),
        description="Cluster startup nodes",
    )
    sentinels: tuple[RedisNode, ...] = Field(
        default=(),
        description="Sentinel addresses",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Name of the sentinel-monitored service",
    )
    split_reads: bool = Field(
        default=False,
        description="Route reads to a replica and writes to the primary",
    )
    max_connections: int = Field(default=10, ge=1, le=100)
    socket_timeout: float = Field(default=5.0, gt=0)
    socket_connect_timeout: float = Field(default=5.0, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """
        Validate Redis URL format.

        Raises:
            ValueError: If Redis URL format is invalid
        """
        if v is not None and not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with 'redis://', 'rediss://' or 'unix://'")
        return v

    @model_validator(mode="after")
    def validate_topology(self) -> "RedisConnectionOptions":
        """Ensure a single topology is described."""
        topologies = [
            self.url is not None,
            bool(self.startup_nodes),
            bool(self.sentinels),
        ]
        if sum(topologies) > 1:
            raise ValueError(
                "Only one of 'url', 'startup_nodes' or 'sentinels' may be set"
            )
        if self.sentinels and not self.service_name:
            raise ValueError("'service_name' is required with 'sentinels'")
        if self.split_reads and not self.sentinels:
            raise ValueError("'split_reads' requires a sentinel topology")
        return self

    @property
    def is_cluster(self) -> bool:
        return bool(self.startup_nodes)

    @property
    def is_sentinel(self) -> bool:
        return bool(self.sentinels)


class CacheOptions(BaseModel):
    """
    Immutable per-cache configuration.

    Created once when the cache is constructed and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    default_key_ttl: int = Field(
        default=DEFAULT_KEY_TTL,
        gt=0,
        description="Key TTL in seconds",
    )
    generation: int = Field(
        default=DEFAULT_GENERATION,
        description="Increment to invalidate all keys across breaking releases",
    )
    read_timeout: float = Field(
        default=DEFAULT_READ_TIMEOUT_MS,
        gt=0,
        description="Read timeout in milliseconds",
    )
    serialization: SerializationPolicy = Field(
        default=SerializationPolicy.VERBATIM,
        description="Projection applied to values before they are persisted",
    )
    redis: RedisConnectionOptions = Field(default_factory=RedisConnectionOptions)

    @classmethod
    def from_settings(cls, settings: "CacheSettings") -> "CacheOptions":
        """
        Build cache options from environment settings.

        Args:
            settings: Loaded settings

        Returns:
            CacheOptions: Immutable options for a cache instance
        """
        cluster_nodes = tuple(RedisNode.parse(n) for n in settings.redis_cluster_nodes)
        sentinels = tuple(RedisNode.parse(n) for n in settings.redis_sentinels)

        redis = RedisConnectionOptions(
            url=None if cluster_nodes or sentinels else settings.redis_url,
            startup_nodes=cluster_nodes,
            sentinels=sentinels,
            service_name=settings.redis_sentinel_service,
            split_reads=settings.redis_split_reads,
            max_connections=settings.redis_max_connections,
        )

        return cls(
            default_key_ttl=settings.default_key_ttl,
            generation=settings.generation,
            read_timeout=settings.read_timeout,
            serialization=settings.serialization,
            redis=redis,
        )


class CacheSettings(BaseSettings):
    """
    Cache settings with environment variable support.

    All settings can be overridden via environment variables with the
    CACHE_ prefix (e.g., CACHE_REDIS_URL, CACHE_GENERATION).
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache Configuration
    default_key_ttl: int = Field(
        default=DEFAULT_KEY_TTL,
        gt=0,
        description="Key TTL in seconds",
    )

    generation: int = Field(
        default=DEFAULT_GENERATION,
        description="Cache key generation",
    )

    read_timeout: float = Field(
        default=DEFAULT_READ_TIMEOUT_MS,
        gt=0,
        description="Read timeout in milliseconds",
    )

    serialization: SerializationPolicy = Field(
        default=SerializationPolicy.VERBATIM,
        description="Serialization policy",
    )

    # Redis Configuration
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        description="Redis connection URL for single-node deployments",
    )

    redis_cluster_nodes: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated host:port cluster startup nodes",
    )

    redis_sentinels: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Comma-separated host:port sentinel addresses",
    )

    redis_sentinel_service: Optional[str] = Field(
        default=None,
        description="Sentinel service name",
    )

    redis_split_reads: bool = Field(
        default=False,
        description="Read from replicas, write to the primary",
    )

    redis_max_connections: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum Redis connection pool size",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Runtime environment",
    )

    @field_validator("redis_cluster_nodes", "redis_sentinels", mode="before")
    @classmethod
    def parse_node_list(cls, v) -> list[str]:
        """
        Parse node addresses from string or list.

        Args:
            v: Comma-separated string or list

        Returns:
            List of host:port strings
        """
        if isinstance(v, str):
            return [node.strip() for node in v.split(",") if node.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> CacheSettings:
    """
    Get cached settings instance.

    Returns:
        CacheSettings: Settings loaded once per process
    """
    return CacheSettings()
