"""Keyspace provisioning against the system keyspace."""

from __future__ import annotations

import logging
from typing import Optional

from cqlschema.client import (
    BACKEND_ERRORS,
    ClientFactory,
    check_datacenter_name,
    check_keyspace_name,
    new_cql_client,
)
from cqlschema.constants import SYSTEM_KEYSPACE
from cqlschema.errors import BackendConnectionError, ProvisioningError
from cqlschema.models import ConnectionConfig

logger = logging.getLogger(__name__)


def do_create_keyspace(
    config: ConnectionConfig,
    name: str,
    datacenter: Optional[str] = None,
    client_factory: ClientFactory = new_cql_client,
) -> None:
    """
    Create keyspace ``name`` with ``config.num_replicas`` replicas.

    The DDL runs against the system keyspace since the target does not exist
    yet.  A non-empty ``datacenter`` selects NetworkTopologyStrategy scoped
    to that datacenter; otherwise SimpleStrategy is used.

    Raises:
        ConfigError: invalid keyspace or datacenter name
        BackendConnectionError: the bootstrap client could not connect
        ProvisioningError: the backend rejected or never answered the DDL
    """
    check_keyspace_name(name)
    if datacenter:
        check_datacenter_name(datacenter)
    bootstrap = config.with_keyspace(SYSTEM_KEYSPACE)

    try:
        client = client_factory(bootstrap)
    except BackendConnectionError as e:
        raise BackendConnectionError(f"error creating keyspace {name}: {e}") from e

    with client:
        try:
            if datacenter:
                client.create_nts_keyspace(name, datacenter, config.num_replicas)
            else:
                client.create_keyspace(name, config.num_replicas)
        except BACKEND_ERRORS as e:
            raise ProvisioningError(f"error creating keyspace {name}: {e}") from e

    logger.debug(
        "Created keyspace %s (replicas=%d, datacenter=%s)",
        name, config.num_replicas, datacenter or "-",
    )
