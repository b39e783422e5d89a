"""
cqlschema - schema-version safety and keyspace provisioning for a
Cassandra-backed workflow engine.

Example:
    from cqlschema import verify_compatible_version
    from cqlschema.models import PersistenceConfig

    persistence = PersistenceConfig.from_yaml("config/development.yaml")
    verify_compatible_version(persistence)
"""

from cqlschema.constants import SCHEMA_VERSION, VISIBILITY_SCHEMA_VERSION
from cqlschema.errors import (
    BackendConnectionError,
    ConfigError,
    ProvisioningError,
    SchemaToolError,
    UnsupportedBackendError,
    VersionMismatchError,
)
from cqlschema.keyspace import do_create_keyspace
from cqlschema.models import ConnectionConfig, TLSConfig, validate_connection_config
from cqlschema.verifier import check_compatible_version, verify_compatible_version

__version__ = "0.4.0"

__all__ = [
    "SCHEMA_VERSION",
    "VISIBILITY_SCHEMA_VERSION",
    "BackendConnectionError",
    "ConfigError",
    "ConnectionConfig",
    "ProvisioningError",
    "SchemaToolError",
    "TLSConfig",
    "UnsupportedBackendError",
    "VersionMismatchError",
    "check_compatible_version",
    "do_create_keyspace",
    "validate_connection_config",
    "verify_compatible_version",
]
