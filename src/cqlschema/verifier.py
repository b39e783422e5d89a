"""
Startup verification of installed schema versions.

For every logical store that lives on Cassandra, connect with fixed,
short timeouts, read the installed schema version and fail if it is older
than the version this release expects.  Stores on other backends are
skipped.  Stores are checked one at a time in a fixed order (default, then
visibility) and the first failure wins.

Usage::

    from cqlschema.models import PersistenceConfig
    from cqlschema.verifier import verify_compatible_version

    verify_compatible_version(PersistenceConfig.from_yaml("development.yaml"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Union

from cqlschema.client import ClientFactory, new_cql_client
from cqlschema.constants import (
    CASSANDRA_PLUGIN_NAME,
    DEFAULT_CONNECT_TIMEOUT_S,
    DEFAULT_TIMEOUT_S,
    SCHEMA_VERSION,
    VISIBILITY_SCHEMA_VERSION,
)
from cqlschema.errors import UnsupportedBackendError
from cqlschema.models import (
    ConnectionConfig,
    DataStore,
    NoSQLStoreConfig,
    PersistenceConfig,
    validate_connection_config,
)
from cqlschema.version import verify_installed_version

__all__ = [
    "StoreVersionRequirement",
    "VersionVerifier",
    "check_compatible_version",
    "requirements_from_persistence",
    "verify_compatible_version",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreVersionRequirement:
    """
    Expected schema version for one logical store.

    ``store_name`` is the role ("default", "visibility"); ``datastore_name``
    is the key the role points at in the persistence config.
    """

    store_name: str
    datastore: Optional[DataStore]
    expected_version: str
    datastore_name: str = ""


def check_compatible_version(
    store: Union[ConnectionConfig, NoSQLStoreConfig],
    expected_version: str,
    client_factory: ClientFactory = new_cql_client,
    store_name: str = "",
) -> str:
    """
    Check a single keyspace against ``expected_version``.

    Caller-supplied timeouts are ignored in favour of the defaults so the
    check stays bounded.

    Returns:
        The installed version.
    """
    if isinstance(store, NoSQLStoreConfig):
        store = store.to_connection_config()
    config = validate_connection_config(
        store.with_timeouts(
            DEFAULT_TIMEOUT_S, DEFAULT_CONNECT_TIMEOUT_S
        )
    )
    with client_factory(config) as client:
        return verify_installed_version(
            client, config.keyspace, expected_version, store=store_name
        )


class VersionVerifier:
    """Runs ``check_compatible_version`` over a list of store requirements."""

    def __init__(self, client_factory: ClientFactory = new_cql_client):
        self.client_factory = client_factory

    def verify_all(self, requirements: Iterable[StoreVersionRequirement]) -> List[str]:
        """
        Verify each requirement in order, stopping at the first failure.

        Returns:
            Names of the stores that were actually checked.

        Raises:
            UnsupportedBackendError: a nosql slot names another plugin
            VersionMismatchError: an installed version is too old
        """
        checked = []
        for req in requirements:
            if req.datastore is None or req.datastore.nosql is None:
                logger.debug(
                    "Store %s (%s) does not use Cassandra, skipping",
                    req.store_name, req.datastore_name or "-",
                )
                continue

            nosql = req.datastore.nosql
            if nosql.plugin_name != CASSANDRA_PLUGIN_NAME:
                raise UnsupportedBackendError(nosql.plugin_name)

            installed = check_compatible_version(
                nosql,
                req.expected_version,
                client_factory=self.client_factory,
                store_name=req.store_name,
            )
            logger.debug(
                "Store %s is compatible (installed=%s, expected=%s)",
                req.store_name, installed, req.expected_version,
            )
            checked.append(req.store_name)
        return checked


def requirements_from_persistence(
    persistence: PersistenceConfig,
    expected_versions: Optional[Mapping[str, str]] = None,
) -> List[StoreVersionRequirement]:
    """
    Build requirements for the default and visibility stores.

    ``expected_versions`` maps the roles ``"default"`` and ``"visibility"``
    to versions; missing roles fall back to the versions shipped with this
    release.  A role whose datastore is missing from ``datastores`` is
    dropped.
    """
    versions = {"default": SCHEMA_VERSION, "visibility": VISIBILITY_SCHEMA_VERSION}
    versions.update(expected_versions or {})

    roles = [("default", persistence.default_store)]
    if persistence.visibility_store:
        roles.append(("visibility", persistence.visibility_store))

    requirements = []
    for role, datastore_name in roles:
        datastore = persistence.datastores.get(datastore_name)
        if datastore is None:
            continue
        requirements.append(
            StoreVersionRequirement(
                store_name=role,
                datastore=datastore,
                expected_version=versions[role],
                datastore_name=datastore_name,
            )
        )
    return requirements


def verify_compatible_version(
    persistence: PersistenceConfig,
    expected_versions: Optional[Mapping[str, str]] = None,
    client_factory: ClientFactory = new_cql_client,
) -> None:
    """
    Ensure the default and visibility keyspaces are at least at the
    versions this release expects.

    Installed versions newer than expected are accepted, which keeps a code
    rollback after a schema upgrade working.
    """
    VersionVerifier(client_factory).verify_all(
        requirements_from_persistence(persistence, expected_versions)
    )
