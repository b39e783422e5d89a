"""
Resolve a validated ``ConnectionConfig`` from CLI/environment inputs.

The resolver never parses argv itself; it reads named values through an
``OptionSource``.  ``MappingOptionSource`` adapts any mapping (click's
merged parameters, a plain dict in tests) to that interface.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol

from cqlschema.errors import ConfigError
from cqlschema.models import (
    ConnectionConfig,
    TLSConfig,
    split_csv,
    validate_connection_config,
)

# Option keys
OPT_ENDPOINT = "endpoint"
OPT_PORT = "port"
OPT_USER = "user"
OPT_PASSWORD = "password"
OPT_ALLOWED_AUTHENTICATORS = "allowed_authenticators"
OPT_TIMEOUT = "timeout"
OPT_CONNECT_TIMEOUT = "connect_timeout"
OPT_KEYSPACE = "keyspace"
OPT_REPLICATION_FACTOR = "replication_factor"
OPT_PROTOCOL_VERSION = "protocol_version"
OPT_DATACENTER = "datacenter"
OPT_ENABLE_TLS = "tls"
OPT_TLS_CERT_FILE = "tls_cert_file"
OPT_TLS_KEY_FILE = "tls_key_file"
OPT_TLS_CA_FILE = "tls_ca_file"
OPT_TLS_ENABLE_HOST_VERIFICATION = "tls_enable_host_verification"
OPT_TLS_SERVER_NAME = "tls_server_name"


class OptionSource(Protocol):  # pragma: no cover - structural typing helper
    def string(self, key: str) -> str: ...
    def integer(self, key: str) -> int: ...
    def number(self, key: str) -> float: ...
    def boolean(self, key: str) -> bool: ...
    def string_list(self, key: str) -> List[str]: ...


class MappingOptionSource:
    """Typed lookups over a mapping; missing or None values read as empty."""

    def __init__(self, values: Mapping[str, Any]):
        self._values = values

    def _get(self, key: str) -> Any:
        return self._values.get(key)

    def string(self, key: str) -> str:
        value = self._get(key)
        return "" if value is None else str(value)

    def integer(self, key: str) -> int:
        value = self._get(key)
        if value in (None, ""):
            return 0
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"option {flag(key)} expects an integer, got {value!r}") from e

    def number(self, key: str) -> float:
        value = self._get(key)
        if value in (None, ""):
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"option {flag(key)} expects a number, got {value!r}") from e

    def boolean(self, key: str) -> bool:
        value = self._get(key)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    def string_list(self, key: str) -> List[str]:
        value = self._get(key)
        if not value:
            return []
        if isinstance(value, str):
            return list(split_csv(value))
        # click multiple=True yields a tuple; each entry may itself be a CSV
        return [item for v in value for item in split_csv(v)]


def flag(key: str) -> str:
    """Render an option key the way the CLI spells it."""
    return "(--" + key.replace("_", "-") + ")"


def resolve_tls(source: OptionSource) -> Optional[TLSConfig]:
    """TLS settings when TLS is enabled, else None."""
    if not source.boolean(OPT_ENABLE_TLS):
        return None
    return TLSConfig(
        enabled=True,
        cert_file=source.string(OPT_TLS_CERT_FILE) or None,
        key_file=source.string(OPT_TLS_KEY_FILE) or None,
        ca_file=source.string(OPT_TLS_CA_FILE) or None,
        enable_host_verification=source.boolean(OPT_TLS_ENABLE_HOST_VERIFICATION),
        server_name=source.string(OPT_TLS_SERVER_NAME) or None,
    )


def resolve_connection_config(source: OptionSource) -> ConnectionConfig:
    """
    Build and validate a connection config from ``source``.

    Raises:
        ConfigError: missing endpoint or keyspace, or a malformed value
    """
    try:
        config = ConnectionConfig(
            hosts=split_csv(source.string(OPT_ENDPOINT)),
            port=source.integer(OPT_PORT),
            user=source.string(OPT_USER) or None,
            password=source.string(OPT_PASSWORD) or None,
            allowed_authenticators=tuple(source.string_list(OPT_ALLOWED_AUTHENTICATORS)),
            keyspace=source.string(OPT_KEYSPACE),
            num_replicas=source.integer(OPT_REPLICATION_FACTOR),
            protocol_version=source.integer(OPT_PROTOCOL_VERSION),
            timeout=source.number(OPT_TIMEOUT),
            connect_timeout=source.number(OPT_CONNECT_TIMEOUT),
            tls=resolve_tls(source),
        )
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        raise ConfigError(str(e)) from e
    return validate_connection_config(config)
