"""cqlschema CLI - keyspace provisioning."""

import click

from cqlschema.keyspace import do_create_keyspace

from ._common import client_factory, connection_config, schema_command


@click.command("create-keyspace")
@click.option("--keyspace", "-k", "target", required=True, help="Name of the keyspace to create")
@click.option("--replication-factor", "--rf", type=int, default=1, show_default=True,
              help="Replicas per datacenter (or cluster-wide without --datacenter)")
@click.option("--datacenter", "--dc", default="",
              help="Use NetworkTopologyStrategy scoped to this datacenter")
@click.option("--protocol-version", "--pv", envvar="CASSANDRA_PROTO_VERSION", type=int,
              default=0, help="CQL protocol version (0 = negotiate)")
@click.pass_context
@schema_command
def create_keyspace(ctx, target, replication_factor, datacenter, protocol_version):
    """Create a keyspace with simple or datacenter-scoped replication."""
    config = connection_config(ctx)
    do_create_keyspace(config, target, datacenter, client_factory=client_factory(ctx))
    click.echo(f"Created keyspace {target} (replication factor {config.num_replicas})")
