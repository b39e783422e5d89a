"""cqlschema CLI - schema version checks."""

from pathlib import Path

import click

from cqlschema.models import PersistenceConfig
from cqlschema.verifier import (
    VersionVerifier,
    check_compatible_version,
    requirements_from_persistence,
)

from ._common import client_factory, connection_config, schema_command


@click.command("check-compatible-version")
@click.option("--expected-version", "-v", required=True,
              help="Oldest schema version the caller can run against")
@click.option("--protocol-version", "--pv", envvar="CASSANDRA_PROTO_VERSION", type=int,
              default=0, help="CQL protocol version (0 = negotiate)")
@click.pass_context
@schema_command
def check_compatible_version_cmd(ctx, expected_version, protocol_version):
    """Fail unless the keyspace's schema is at least EXPECTED_VERSION."""
    config = connection_config(ctx)
    installed = check_compatible_version(
        config, expected_version, client_factory=client_factory(ctx)
    )
    click.echo(f"Keyspace {config.keyspace} is compatible (installed {installed})")


@click.command("verify-compatible-version")
@click.option("--config", "-c", "config_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Engine config (YAML) with a persistence section")
@click.option("--default-version", default=None, help="Override expected default store version")
@click.option("--visibility-version", default=None,
              help="Override expected visibility store version")
@click.pass_context
@schema_command
def verify_compatible_version_cmd(ctx, config_path, default_version, visibility_version):
    """Verify every Cassandra store in a persistence config."""
    expected = {}
    if default_version:
        expected["default"] = default_version
    if visibility_version:
        expected["visibility"] = visibility_version

    persistence = PersistenceConfig.from_yaml(config_path)
    checked = VersionVerifier(client_factory(ctx)).verify_all(
        requirements_from_persistence(persistence, expected)
    )
    if checked:
        click.echo(f"Schema versions compatible for stores: {', '.join(checked)}")
    else:
        click.echo("No Cassandra stores configured; nothing to verify")
