"""
cqlschema CLI - Cassandra schema tooling for the workflow engine.

Commands:
    cqlschema create-keyspace             Create a keyspace
    cqlschema check-compatible-version    Check one keyspace's schema version
    cqlschema verify-compatible-version   Check every store in a persistence config
    cqlschema setup-schema                Create a schema via the migration engine
    cqlschema update-schema               Upgrade a schema via the migration engine
"""

import click

from cqlschema import __version__
from cqlschema.config import get_config
from cqlschema.constants import DEFAULT_CONNECT_TIMEOUT_S, DEFAULT_KEYSPACE, DEFAULT_TIMEOUT_S
from cqlschema.logger import configure_logging

from ._common import handle_err, schema_command
from .keyspace import create_keyspace
from .schema import setup_schema_cmd, update_schema_cmd
from .version import check_compatible_version_cmd, verify_compatible_version_cmd


@click.group()
@click.version_option(version=__version__)
@click.option("--endpoint", "-e", envvar="CASSANDRA_HOST", default="127.0.0.1",
              show_default=True, help="Comma-separated Cassandra hosts")
@click.option("--port", "-p", envvar="CASSANDRA_PORT", type=int, default=0,
              help="Native transport port (0 = 9042)")
@click.option("--user", "-u", envvar="CASSANDRA_USER", default="", help="Username")
@click.option("--password", "--pw", envvar="CASSANDRA_PASSWORD", default="", help="Password")
@click.option("--allowed-authenticators", envvar="CASSANDRA_ALLOWED_AUTHENTICATORS",
              multiple=True, help="Accepted server authenticator classes (repeatable)")
@click.option("--timeout", "-t", envvar="CASSANDRA_TIMEOUT", type=float,
              default=DEFAULT_TIMEOUT_S, show_default=True, help="Request timeout in seconds")
@click.option("--connect-timeout", "--ct", envvar="CASSANDRA_CONNECT_TIMEOUT", type=float,
              default=DEFAULT_CONNECT_TIMEOUT_S, show_default=True,
              help="Connect timeout in seconds")
@click.option("--keyspace", "-k", envvar="CASSANDRA_KEYSPACE", default=DEFAULT_KEYSPACE,
              show_default=True, help="Keyspace to operate on")
@click.option("--tls", envvar="CASSANDRA_ENABLE_TLS", is_flag=True, help="Enable TLS")
@click.option("--tls-cert-file", envvar="CASSANDRA_TLS_CERT", default="",
              help="Client certificate (PEM)")
@click.option("--tls-key-file", envvar="CASSANDRA_TLS_KEY", default="",
              help="Client private key (PEM)")
@click.option("--tls-ca-file", envvar="CASSANDRA_TLS_CA", default="", help="CA bundle (PEM)")
@click.option("--tls-enable-host-verification", envvar="CASSANDRA_TLS_VERIFY_HOST",
              is_flag=True, help="Verify server certificate and hostname")
@click.option("--tls-server-name", envvar="CASSANDRA_TLS_SERVER_NAME", default="",
              help="Expected server name (SNI)")
@click.option("--log-level", type=click.Choice(["debug", "info", "warning", "error"]),
              default=None, help="Override CQLSCHEMA_LOG_LEVEL")
@click.option("--log-format", type=click.Choice(["json", "text"]),
              default=None, help="Override CQLSCHEMA_LOG_FORMAT")
@click.pass_context
def main(ctx, log_level, log_format, **_connection_options):
    """cqlschema - schema version safety and keyspace provisioning."""
    ctx.ensure_object(dict)
    settings = get_config()
    configure_logging(
        level=log_level or settings.log_level,
        fmt=log_format or settings.log_format,
    )


main.add_command(create_keyspace)
main.add_command(create_keyspace, name="create")
main.add_command(check_compatible_version_cmd)
main.add_command(verify_compatible_version_cmd)
main.add_command(setup_schema_cmd)
main.add_command(update_schema_cmd)

__all__ = ["main", "handle_err", "schema_command"]


if __name__ == "__main__":
    main()
