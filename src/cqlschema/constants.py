"""
Connection and schema constants for cqlschema.

Centralizes defaults so the resolver, the client factory and the version
checks agree on the same values.
"""

from __future__ import annotations

# =============================================================================
# Backend identity
# =============================================================================

# Plugin name a datastore must declare in its nosql slot
CASSANDRA_PLUGIN_NAME = "cassandra"

# Keyspace used to run keyspace-level DDL
SYSTEM_KEYSPACE = "system"

# =============================================================================
# Connection defaults
# =============================================================================

DEFAULT_PORT = 9042

# Replication factor applied when none is configured
DEFAULT_NUM_REPLICAS = 1

# Request timeout in seconds
DEFAULT_TIMEOUT_S = 30.0

# Connection establishment timeout in seconds
DEFAULT_CONNECT_TIMEOUT_S = 2.0

# Keyspace targeted by the CLI when none is given
DEFAULT_KEYSPACE = "cadence"

# Authenticators accepted when the allow-list is empty
DEFAULT_ALLOWED_AUTHENTICATORS = (
    "org.apache.cassandra.auth.PasswordAuthenticator",
    "com.instaclustr.cassandra.auth.SharedSecretAuthenticator",
    "com.datastax.bdp.cassandra.auth.DseAuthenticator",
    "io.aiven.cassandra.auth.AivenAuthenticator",
    "com.ericsson.bss.cassandra.ecaudit.auth.AuditPasswordAuthenticator",
    "com.amazon.helenus.auth.HelenusAuthenticator",
    "com.ericsson.bss.cassandra.ecaudit.auth.AuditAuthenticator",
    "com.scylladb.auth.SaslauthdAuthenticator",
    "com.scylladb.auth.TransitionalAuthenticator",
    "com.instaclustr.cassandra.auth.InstaclustrPasswordAuthenticator",
)

# =============================================================================
# Expected schema versions shipped with this release
# =============================================================================

SCHEMA_VERSION = "0.30"
VISIBILITY_SCHEMA_VERSION = "0.6"

# Keyspace names must be valid unquoted CQL identifiers
MAX_KEYSPACE_NAME_LENGTH = 48
