"""cqlschema CLI - schema setup and update through the migration engine."""

import click

from cqlschema.config import get_config
from cqlschema.migration import (
    SetupOptions,
    UpdateOptions,
    load_migrator,
    setup_schema,
    update_schema,
)

from ._common import client_factory, connection_config, schema_command


def _migrator(ctx, name):
    loader = (ctx.obj or {}).get("migrator_loader", load_migrator)
    return loader(name or get_config().migrator)


@click.command("setup-schema")
@click.option("--schema-file", "-f", default=None, help="CQL file with the base schema")
@click.option("--version", "initial_version", default=None,
              help="Version to record after setup")
@click.option("--overwrite", "-o", is_flag=True, help="Drop existing tables first")
@click.option("--disable-versioning", "-d", is_flag=True,
              help="Do not record a schema version")
@click.option("--migrator", default=None, help="Migration engine entry point name")
@click.option("--protocol-version", "--pv", envvar="CASSANDRA_PROTO_VERSION", type=int,
              default=0, help="CQL protocol version (0 = negotiate)")
@click.pass_context
@schema_command
def setup_schema_cmd(ctx, schema_file, initial_version, overwrite, disable_versioning,
                     migrator, protocol_version):
    """Create the schema in the selected keyspace."""
    config = connection_config(ctx)
    options = SetupOptions(
        schema_file=schema_file,
        initial_version=initial_version,
        overwrite=overwrite,
        disable_versioning=disable_versioning,
    )
    setup_schema(config, _migrator(ctx, migrator), options, client_factory=client_factory(ctx))
    click.echo(f"Schema setup complete for keyspace {config.keyspace}")


@click.command("update-schema")
@click.option("--schema-dir", "-d", required=True, help="Directory of versioned updates")
@click.option("--version", "target_version", default=None, help="Stop at this version")
@click.option("--dry-run", is_flag=True, help="Print the plan without applying it")
@click.option("--migrator", default=None, help="Migration engine entry point name")
@click.option("--protocol-version", "--pv", envvar="CASSANDRA_PROTO_VERSION", type=int,
              default=0, help="CQL protocol version (0 = negotiate)")
@click.pass_context
@schema_command
def update_schema_cmd(ctx, schema_dir, target_version, dry_run, migrator, protocol_version):
    """Upgrade the schema in the selected keyspace."""
    config = connection_config(ctx)
    options = UpdateOptions(schema_dir=schema_dir, target_version=target_version, dry_run=dry_run)
    update_schema(config, _migrator(ctx, migrator), options, client_factory=client_factory(ctx))
    click.echo(f"Schema update complete for keyspace {config.keyspace}")
