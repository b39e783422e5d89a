"""
CQL control-plane client built on the DataStax cassandra-driver.

``new_cql_client`` is the client factory: it turns a ``ConnectionConfig``
into a connected ``CQLClient``.  The caller owns the client and must close
it; ``CQLClient`` is a context manager so ``with new_cql_client(cfg) as c:``
guarantees that on every exit path.

Besides the operations the version check and keyspace provisioning need,
the client exposes the small surface a schema-migration engine drives
(version bookkeeping, DDL execution, table listing).
"""

from __future__ import annotations

import logging
import ssl
from datetime import datetime, timezone
from typing import Callable, List, Optional

from cassandra import AuthenticationFailed, DriverException
from cassandra.auth import PlainTextAuthenticator, PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable

from cqlschema.constants import (
    DEFAULT_ALLOWED_AUTHENTICATORS,
    DEFAULT_NUM_REPLICAS,
    MAX_KEYSPACE_NAME_LENGTH,
)
from cqlschema.errors import BackendConnectionError, ConfigError, VersionReadError
from cqlschema.models import ConnectionConfig, TLSConfig

__all__ = [
    "BACKEND_ERRORS",
    "AllowListAuthProvider",
    "CQLClient",
    "ClientFactory",
    "build_ssl_context",
    "check_datacenter_name",
    "check_keyspace_name",
    "new_cql_client",
]

logger = logging.getLogger(__name__)

# Failures a request can raise; NoHostAvailable is not a DriverException
BACKEND_ERRORS = (DriverException, NoHostAvailable)

# Errors the driver (or TLS setup) raises while connecting
_CONNECT_ERRORS = BACKEND_ERRORS + (OSError,)

READ_SCHEMA_VERSION_CQL = (
    "SELECT curr_version FROM schema_version WHERE keyspace_name=%s"
)
WRITE_SCHEMA_VERSION_CQL = (
    "INSERT INTO schema_version"
    "(keyspace_name, creation_time, curr_version, min_compatible_version) "
    "VALUES (%s, %s, %s, %s)"
)
WRITE_SCHEMA_UPDATE_HISTORY_CQL = (
    "INSERT INTO schema_update_history"
    "(year, month, update_time, old_version, new_version, manifest_md5, description) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s)"
)
LIST_TABLES_CQL = (
    "SELECT table_name FROM system_schema.tables WHERE keyspace_name=%s"
)
CREATE_KEYSPACE_CQL = (
    "CREATE KEYSPACE IF NOT EXISTS {name} WITH replication = "
    "{{ 'class' : 'SimpleStrategy', 'replication_factor' : {replicas} }}"
)
CREATE_NTS_KEYSPACE_CQL = (
    "CREATE KEYSPACE IF NOT EXISTS {name} WITH replication = "
    "{{ 'class' : 'NetworkTopologyStrategy', '{datacenter}' : {replicas} }}"
)
DROP_KEYSPACE_CQL = "DROP KEYSPACE IF EXISTS {name}"


def check_keyspace_name(name: str) -> str:
    """
    Reject names that are not plain CQL identifiers.

    Keyspace names are interpolated into DDL, so only
    ``[A-Za-z][A-Za-z0-9_]*`` up to 48 characters is accepted.
    """
    if (
        not name
        or len(name) > MAX_KEYSPACE_NAME_LENGTH
        or not name[0].isascii()
        or not name[0].isalpha()
        or not all(c.isascii() and (c.isalnum() or c == "_") for c in name)
    ):
        raise ConfigError(f"invalid keyspace name: {name!r}")
    return name


def check_datacenter_name(datacenter: str) -> str:
    if not datacenter or any(c in datacenter for c in "'\"\\"):
        raise ConfigError(f"invalid datacenter name: {datacenter!r}")
    return datacenter


# ---------------------------------------------------------------------------
# Authentication and TLS
# ---------------------------------------------------------------------------


class AllowListAuthenticator(PlainTextAuthenticator):
    """Plain-text authenticator that refuses unexpected server authenticators."""

    def __init__(self, username: str, password: str, allowed: tuple[str, ...]):
        super().__init__(username, password)
        self.allowed = allowed

    def initial_response(self):
        server = self.server_authenticator_class
        if server and server not in self.allowed:
            raise AuthenticationFailed(
                f"unexpected authenticator {server!r}, allowed: {list(self.allowed)}"
            )
        return super().initial_response()


class AllowListAuthProvider(PlainTextAuthProvider):
    """Auth provider handing out ``AllowListAuthenticator`` instances."""

    def __init__(self, username: str, password: str, allowed: tuple[str, ...] = ()):
        super().__init__(username=username, password=password)
        self.allowed = tuple(allowed) or DEFAULT_ALLOWED_AUTHENTICATORS

    def new_authenticator(self, host):
        return AllowListAuthenticator(self.username, self.password, self.allowed)


def build_ssl_context(tls: Optional[TLSConfig]) -> Optional[ssl.SSLContext]:
    """Create an SSL context from TLS settings, or None when TLS is off."""
    if tls is None or not tls.enabled:
        return None

    ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=tls.ca_file)
    if tls.enable_host_verification:
        ctx.check_hostname = True
        ctx.verify_mode = ssl.CERT_REQUIRED
    else:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE

    if tls.cert_file and tls.key_file:
        ctx.load_cert_chain(certfile=tls.cert_file, keyfile=tls.key_file)
    return ctx


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class CQLClient:
    """
    A connected session scoped to one keyspace.

    Owns the underlying ``Cluster``; ``close()`` shuts it down and is
    idempotent.
    """

    def __init__(self, cluster: Cluster, session, config: ConnectionConfig):
        self._cluster = cluster
        self._session = session
        self.config = config
        self._closed = False

    def __enter__(self) -> "CQLClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the session and cluster connections."""
        if self._closed:
            return
        self._closed = True
        self._cluster.shutdown()
        logger.debug("Closed CQL client for keyspace %s", self.config.keyspace)

    def _execute(self, query: str, params: Optional[tuple] = None):
        return self._session.execute(query, params, timeout=self.config.timeout)

    # Version bookkeeping

    def read_schema_version(self, keyspace: str) -> str:
        """Return ``curr_version`` recorded for ``keyspace``."""
        try:
            row = self._execute(READ_SCHEMA_VERSION_CQL, (keyspace,)).one()
        except BACKEND_ERRORS as e:
            raise VersionReadError(keyspace, str(e)) from e
        if row is None:
            raise VersionReadError(keyspace, "no schema version recorded")
        return row.curr_version

    def query_installed_version(self, keyspace: str) -> str:
        """Installed schema version for ``keyspace``."""
        return self.read_schema_version(keyspace)

    def update_schema_version(self, new_version: str, min_compatible_version: str) -> None:
        """Record the version now installed in the client's keyspace."""
        self._execute(
            WRITE_SCHEMA_VERSION_CQL,
            (
                self.config.keyspace,
                datetime.now(timezone.utc),
                new_version,
                min_compatible_version,
            ),
        )

    def write_schema_update_log(
        self,
        old_version: str,
        new_version: str,
        manifest_md5: str,
        description: str,
    ) -> None:
        """Append an entry to the schema update history."""
        now = datetime.now(timezone.utc)
        self._execute(
            WRITE_SCHEMA_UPDATE_HISTORY_CQL,
            (now.year, now.month, now, old_version, new_version, manifest_md5, description),
        )

    # DDL

    def exec_ddl_query(self, stmt: str) -> None:
        """Run one DDL statement as-is."""
        self._execute(stmt)

    def list_tables(self) -> List[str]:
        """Tables in the client's keyspace."""
        rows = self._execute(LIST_TABLES_CQL, (self.config.keyspace,))
        return [row.table_name for row in rows]

    def create_keyspace(self, name: str, replicas: int = 0) -> None:
        """Create ``name`` with SimpleStrategy replication."""
        replicas = replicas or self.config.num_replicas or DEFAULT_NUM_REPLICAS
        self._execute(
            CREATE_KEYSPACE_CQL.format(name=check_keyspace_name(name), replicas=replicas)
        )

    def create_nts_keyspace(self, name: str, datacenter: str, replicas: int = 0) -> None:
        """Create ``name`` with NetworkTopologyStrategy scoped to ``datacenter``."""
        replicas = replicas or self.config.num_replicas or DEFAULT_NUM_REPLICAS
        self._execute(
            CREATE_NTS_KEYSPACE_CQL.format(
                name=check_keyspace_name(name),
                datacenter=check_datacenter_name(datacenter),
                replicas=replicas,
            )
        )

    def drop_keyspace(self, name: str) -> None:
        self._execute(DROP_KEYSPACE_CQL.format(name=check_keyspace_name(name)))


ClientFactory = Callable[[ConnectionConfig], CQLClient]


def new_cql_client(config: ConnectionConfig) -> CQLClient:
    """
    Connect to the backend described by ``config``.

    The config is used as given; callers validate it first.

    Raises:
        BackendConnectionError: on network, authentication or TLS failure
    """
    kwargs = {
        "contact_points": list(config.hosts),
        "port": config.port,
        "connect_timeout": config.connect_timeout,
        "control_connection_timeout": config.connect_timeout,
    }
    if config.protocol_version:
        kwargs["protocol_version"] = config.protocol_version
    if config.user:
        kwargs["auth_provider"] = AllowListAuthProvider(
            config.user, config.password or "", config.allowed_authenticators
        )

    cluster = None
    try:
        ssl_context = build_ssl_context(config.tls)
        if ssl_context is not None:
            kwargs["ssl_context"] = ssl_context
            if config.tls.server_name:
                kwargs["ssl_options"] = {"server_hostname": config.tls.server_name}

        cluster = Cluster(**kwargs)
        session = cluster.connect(config.keyspace)
    except _CONNECT_ERRORS as e:
        if cluster is not None:
            cluster.shutdown()
        raise BackendConnectionError(f"unable to create CQL client: {e}") from e

    session.default_timeout = config.timeout
    logger.debug(
        "Connected to %s:%d keyspace=%s", ",".join(config.hosts), config.port, config.keyspace
    )
    return CQLClient(cluster, session, config)
