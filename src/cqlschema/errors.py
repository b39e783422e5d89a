"""
Error taxonomy for schema tooling.

Inner components raise these and never log them; the CLI boundary logs each
terminal error once and turns it into a failed exit.
"""

from __future__ import annotations

__all__ = [
    "SchemaToolError",
    "ConfigError",
    "UnsupportedBackendError",
    "BackendConnectionError",
    "VersionReadError",
    "VersionMismatchError",
    "ProvisioningError",
    "MigrationError",
]


class SchemaToolError(Exception):
    """Base class for every error raised by cqlschema."""
    pass


class ConfigError(SchemaToolError):
    """Missing or invalid input."""
    pass


class UnsupportedBackendError(ConfigError):
    """A datastore's nosql slot names a plugin other than cassandra."""

    def __init__(self, plugin_name: str):
        self.plugin_name = plugin_name
        super().__init__(f"unknown NoSQL plugin name: {plugin_name}")


class BackendConnectionError(SchemaToolError):
    """Unable to establish a client (network, auth or TLS failure)."""
    pass


class VersionReadError(SchemaToolError):
    """The installed schema version could not be read or parsed."""

    def __init__(self, keyspace: str, reason: str):
        self.keyspace = keyspace
        self.reason = reason
        super().__init__(
            f"unable to read schema version for keyspace '{keyspace}': {reason}"
        )


class VersionMismatchError(SchemaToolError):
    """Installed schema version is older than the version this binary expects."""

    def __init__(
        self,
        store: str,
        keyspace: str,
        installed: str,
        expected: str,
    ) -> None:
        self.store = store
        self.keyspace = keyspace
        self.installed = installed
        self.expected = expected
        super().__init__(
            f"version mismatch for store '{store}' (keyspace '{keyspace}'): "
            f"expected version {expected} cannot be greater than "
            f"installed version {installed}"
        )


class ProvisioningError(SchemaToolError):
    """Keyspace creation failed at the backend."""
    pass


class MigrationError(SchemaToolError):
    """The schema-migration engine failed or could not be loaded."""
    pass
