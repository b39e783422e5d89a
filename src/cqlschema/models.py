"""
Pydantic v2 models for connection and persistence configuration.

``ConnectionConfig`` describes how to reach one keyspace.  It is frozen:
normalization and keyspace overrides always produce a new instance.

``PersistenceConfig`` mirrors the persistence section of the engine's YAML
config, mapping logical store names to datastore descriptors.  Only the
``nosql`` slot is interpreted here; other backends are carried opaquely.

Usage::

    from cqlschema.models import ConnectionConfig, validate_connection_config

    cfg = validate_connection_config(
        ConnectionConfig(hosts=("10.0.0.1",), keyspace="cadence")
    )
    assert cfg.port == 9042
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from cqlschema.constants import (
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_NUM_REPLICAS,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_S,
)
from cqlschema.errors import ConfigError


def split_csv(value: Any) -> tuple[str, ...]:
    """Turn ``"a, b,,c"`` or ``["a", "b"]`` into ``("a", "b", "c")``."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(h.strip() for h in value if h and h.strip())


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class TLSConfig(BaseModel):
    """TLS material for the driver connection."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    enabled: bool = False
    cert_file: Optional[str] = Field(None, description="Client certificate (PEM)")
    key_file: Optional[str] = Field(None, description="Client private key (PEM)")
    ca_file: Optional[str] = Field(None, description="CA bundle used to verify the server")
    enable_host_verification: bool = Field(
        False, description="Verify the server certificate and hostname"
    )
    server_name: Optional[str] = Field(None, description="SNI / expected server hostname")


class ConnectionConfig(BaseModel):
    """How to reach one keyspace on the backend."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    hosts: tuple[str, ...] = Field(default=(), description="Contact points, in order")
    port: int = Field(default=0, ge=0, description="0 selects the default port")
    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    allowed_authenticators: tuple[str, ...] = ()
    keyspace: str = ""
    num_replicas: int = Field(default=0, ge=0, description="0 selects a factor of 1")
    protocol_version: int = Field(default=0, ge=0, description="0 lets the driver negotiate")
    timeout: float = Field(default=DEFAULT_TIMEOUT_S, ge=0, description="Request timeout (s)")
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT_S, ge=0, description="Connect timeout (s)"
    )
    tls: Optional[TLSConfig] = None

    @field_validator("hosts", mode="before")
    @classmethod
    def _split_hosts(cls, v: Any) -> tuple[str, ...]:
        return split_csv(v)

    @field_validator("allowed_authenticators", mode="before")
    @classmethod
    def _split_authenticators(cls, v: Any) -> tuple[str, ...]:
        return split_csv(v)

    def with_keyspace(self, keyspace: str) -> "ConnectionConfig":
        """Return a copy of this config targeting another keyspace."""
        return self.model_copy(update={"keyspace": keyspace})

    def with_timeouts(self, timeout: float, connect_timeout: float) -> "ConnectionConfig":
        """Return a copy of this config with both timeouts replaced."""
        return self.model_copy(
            update={"timeout": timeout, "connect_timeout": connect_timeout}
        )


def validate_connection_config(config: ConnectionConfig) -> ConnectionConfig:
    """
    Check required fields and apply defaults.

    Pure: the input is never modified; a normalized copy is returned.

    Raises:
        ConfigError: if hosts or keyspace are missing
    """
    if not config.hosts:
        raise ConfigError("missing cassandra endpoint argument (--endpoint)")
    if not config.keyspace:
        raise ConfigError("missing keyspace argument (--keyspace)")

    updates: dict[str, Any] = {}
    if config.port == 0:
        updates["port"] = DEFAULT_PORT
    if config.num_replicas == 0:
        updates["num_replicas"] = DEFAULT_NUM_REPLICAS
    if config.timeout == 0:
        updates["timeout"] = DEFAULT_TIMEOUT_S
    if config.connect_timeout == 0:
        updates["connect_timeout"] = DEFAULT_CONNECT_TIMEOUT_S

    if not updates:
        return config
    return config.model_copy(update=updates)


# ---------------------------------------------------------------------------
# Persistence descriptors
# ---------------------------------------------------------------------------


class _PersistenceModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NoSQLStoreConfig(_PersistenceModel):
    """The ``nosql`` slot of a datastore."""

    plugin_name: str = Field(..., min_length=1)
    hosts: tuple[str, ...] = ()
    port: int = 0
    user: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    allowed_authenticators: tuple[str, ...] = ()
    keyspace: str = ""
    protocol_version: int = Field(default=0, alias="protoVersion")
    tls: Optional[TLSConfig] = None

    @field_validator("hosts", "allowed_authenticators", mode="before")
    @classmethod
    def _split(cls, v: Any) -> tuple[str, ...]:
        return split_csv(v)

    def to_connection_config(self) -> ConnectionConfig:
        """Project the slot onto a connection config (timeouts left at defaults)."""
        return ConnectionConfig(
            hosts=self.hosts,
            port=self.port,
            user=self.user,
            password=self.password,
            allowed_authenticators=self.allowed_authenticators,
            keyspace=self.keyspace,
            protocol_version=self.protocol_version,
            tls=self.tls,
        )


class DataStore(_PersistenceModel):
    """One logical store. Only ``nosql`` is interpreted."""

    nosql: Optional[NoSQLStoreConfig] = None
    sql: Optional[dict[str, Any]] = None


class PersistenceConfig(_PersistenceModel):
    """Maps logical store names to datastore descriptors."""

    default_store: str = Field(..., min_length=1)
    visibility_store: Optional[str] = None
    datastores: dict[str, DataStore] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PersistenceConfig":
        """
        Load from a YAML file.

        Accepts either the persistence mapping itself or a full engine
        config with a top-level ``persistence`` key.

        Raises:
            ConfigError: if the file is missing or does not validate
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except OSError as e:
            raise ConfigError(f"unable to read persistence config {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e

        if isinstance(raw, dict) and "persistence" in raw:
            raw = raw["persistence"]
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"invalid persistence config {path}: {e}") from e
