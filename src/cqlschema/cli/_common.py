"""Shared plumbing for cqlschema CLI commands."""

from __future__ import annotations

import functools
import logging

import click

from cqlschema.client import BACKEND_ERRORS, ClientFactory, new_cql_client
from cqlschema.errors import BackendConnectionError, SchemaToolError
from cqlschema.models import ConnectionConfig
from cqlschema.resolver import MappingOptionSource, resolve_connection_config

logger = logging.getLogger("cqlschema.cli")


class SchemaCommandError(click.ClickException):
    """A terminal cqlschema error surfaced to the shell."""

    def __init__(self, error: SchemaToolError):
        self.error = error
        super().__init__(str(error))


def handle_err(err: SchemaToolError) -> SchemaCommandError:
    """Log a terminal error once and convert it into a failed exit."""
    logger.error("%s", err, extra={"error_type": type(err).__name__})
    return SchemaCommandError(err)


def schema_command(func):
    """Run a command body, converting cqlschema errors at the boundary."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SchemaToolError as e:
            raise handle_err(e) from e
        except BACKEND_ERRORS as e:
            # Driver failures that escaped a component still exit through the boundary
            raise handle_err(BackendConnectionError(f"cassandra request failed: {e}")) from e

    return wrapper


def client_factory(ctx: click.Context) -> ClientFactory:
    """Client factory for this invocation (tests inject one via ``obj``)."""
    return (ctx.obj or {}).get("client_factory", new_cql_client)


def connection_config(ctx: click.Context) -> ConnectionConfig:
    """
    Resolve the connection config from group and command options.

    Group-level options take precedence over command options of the same
    name.
    """
    values = {**ctx.params, **ctx.find_root().params}
    return resolve_connection_config(MappingOptionSource(values))
