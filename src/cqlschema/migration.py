"""
Hand-off to an external schema-migration engine.

cqlschema does not apply versioned DDL itself.  It builds a client for the
target keyspace, passes it to a ``SchemaMigrator`` and always closes it
afterwards.  Migrators are published by other packages under the
``cqlschema.migrators`` entry-point group::

    [project.entry-points."cqlschema.migrators"]
    default = "mypkg.migrator:Migrator"
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from cqlschema.client import ClientFactory, CQLClient, new_cql_client
from cqlschema.errors import ConfigError, MigrationError, SchemaToolError
from cqlschema.models import ConnectionConfig

__all__ = [
    "MIGRATOR_ENTRY_POINT_GROUP",
    "SchemaMigrator",
    "SetupOptions",
    "UpdateOptions",
    "load_migrator",
    "setup_schema",
    "update_schema",
]

logger = logging.getLogger(__name__)

MIGRATOR_ENTRY_POINT_GROUP = "cqlschema.migrators"


class SetupOptions(BaseModel):
    """Options for creating a schema from scratch."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_file: Optional[str] = Field(None, description="CQL file with the base schema")
    initial_version: Optional[str] = Field(None, description="Version to record after setup")
    overwrite: bool = Field(False, description="Drop existing tables first")
    disable_versioning: bool = Field(False, description="Skip schema_version bookkeeping")


class UpdateOptions(BaseModel):
    """Options for upgrading an existing schema."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    schema_dir: str = Field(..., min_length=1, description="Directory of versioned updates")
    target_version: Optional[str] = Field(None, description="Stop at this version")
    dry_run: bool = False


class SchemaMigrator(Protocol):  # pragma: no cover - structural typing helper
    def setup(self, client: CQLClient, options: SetupOptions) -> None: ...
    def update(self, client: CQLClient, options: UpdateOptions) -> None: ...


def load_migrator(name: str) -> SchemaMigrator:
    """
    Instantiate the migrator registered under ``name``.

    Raises:
        ConfigError: nothing is registered under that name
        MigrationError: the entry point failed to load
    """
    try:
        eps = entry_points(group=MIGRATOR_ENTRY_POINT_GROUP)
    except TypeError:
        # Fallback for older Python versions
        eps = entry_points().get(MIGRATOR_ENTRY_POINT_GROUP, [])

    matches = [ep for ep in eps if ep.name == name]
    if not matches:
        raise ConfigError(
            f"no schema migrator named {name!r} in entry-point group "
            f"{MIGRATOR_ENTRY_POINT_GROUP!r}"
        )
    try:
        factory = matches[0].load()
        return factory()
    except Exception as e:
        raise MigrationError(f"unable to load schema migrator {name!r}: {e}") from e


def _run(step, client: CQLClient, options) -> None:
    try:
        step(client, options)
    except SchemaToolError:
        raise
    except Exception as e:
        raise MigrationError(f"schema migration failed: {e}") from e


def setup_schema(
    config: ConnectionConfig,
    migrator: SchemaMigrator,
    options: SetupOptions,
    client_factory: ClientFactory = new_cql_client,
) -> None:
    """Run ``migrator.setup`` against ``config.keyspace``."""
    with client_factory(config) as client:
        logger.debug("Setting up schema in keyspace %s", config.keyspace)
        _run(migrator.setup, client, options)


def update_schema(
    config: ConnectionConfig,
    migrator: SchemaMigrator,
    options: UpdateOptions,
    client_factory: ClientFactory = new_cql_client,
) -> None:
    """Run ``migrator.update`` against ``config.keyspace``."""
    with client_factory(config) as client:
        logger.debug("Updating schema in keyspace %s from %s", config.keyspace, options.schema_dir)
        _run(migrator.update, client, options)
