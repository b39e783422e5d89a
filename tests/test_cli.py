"""Tests for the cqlschema command line."""

import logging

import pytest
from cassandra.cluster import NoHostAvailable
from click.testing import CliRunner

from cqlschema import __version__
from cqlschema.cli import main
from cqlschema.cli._common import SchemaCommandError, handle_err
from cqlschema.errors import VersionMismatchError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


class RecordingMigrator:
    def __init__(self):
        self.setups = []
        self.updates = []

    def setup(self, client, options):
        self.setups.append((client.config.keyspace, options))

    def update(self, client, options):
        self.updates.append((client.config.keyspace, options))


@pytest.fixture
def migrator():
    return RecordingMigrator()


@pytest.fixture
def invoke(runner, factory, migrator):
    loaded = []

    def loader(name):
        loaded.append(name)
        return migrator

    def _invoke(*args, **kwargs):
        obj = {"client_factory": factory, "migrator_loader": loader}
        return runner.invoke(main, list(args), obj=obj, **kwargs)

    _invoke.loaded = loaded
    return _invoke


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------

def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    for name in ("create-keyspace", "check-compatible-version", "verify-compatible-version",
                 "setup-schema", "update-schema"):
        assert name in result.output


# ---------------------------------------------------------------------------
# create-keyspace
# ---------------------------------------------------------------------------

class TestCreateKeyspace:
    def test_simple_strategy(self, invoke, factory):
        result = invoke("-e", "10.0.0.1,10.0.0.2", "create-keyspace", "-k", "new_ks", "--rf", "3")

        assert result.exit_code == 0, result.output
        assert "Created keyspace new_ks (replication factor 3)" in result.output
        assert factory.configs[0].keyspace == "system"
        assert factory.configs[0].hosts == ("10.0.0.1", "10.0.0.2")
        assert factory.clients[0].calls == [("create_keyspace", "new_ks", 3)]

    def test_datacenter_alias(self, invoke, factory):
        result = invoke("create", "-k", "new_ks", "--dc", "dc1")

        assert result.exit_code == 0, result.output
        assert factory.clients[0].calls == [("create_nts_keyspace", "new_ks", "dc1", 1)]

    def test_env_endpoint(self, invoke, factory):
        result = invoke("create-keyspace", "-k", "ks", env={"CASSANDRA_HOST": "cass.local",
                                                            "CASSANDRA_PORT": "9142"})
        assert result.exit_code == 0, result.output
        assert factory.configs[0].hosts == ("cass.local",)
        assert factory.configs[0].port == 9142

    def test_missing_endpoint(self, invoke, factory):
        result = invoke("-e", "", "create-keyspace", "-k", "ks")
        assert result.exit_code == 1
        assert "missing cassandra endpoint argument (--endpoint)" in result.output
        assert factory.configs == []

    def test_invalid_name(self, invoke):
        result = invoke("create-keyspace", "-k", "bad-name")
        assert result.exit_code == 1
        assert "invalid keyspace name" in result.output

    def test_requires_keyspace(self, invoke):
        result = invoke("create-keyspace")
        assert result.exit_code == 2

    def test_backend_unreachable_during_ddl(self, invoke, factory):
        factory.fail_with = NoHostAvailable("all hosts down", {})
        result = invoke("create-keyspace", "-k", "new_ks")

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "error creating keyspace new_ks" in result.output
        assert "all hosts down" in result.output
        assert factory.clients[0].close_count == 1


# ---------------------------------------------------------------------------
# Version checks
# ---------------------------------------------------------------------------

class TestCheckCompatibleVersion:
    def test_compatible(self, invoke, factory):
        factory.versions["cadence"] = "0.31"
        result = invoke("check-compatible-version", "-v", "0.30")

        assert result.exit_code == 0, result.output
        assert "Keyspace cadence is compatible (installed 0.31)" in result.output
        assert factory.configs[0].timeout == 30.0

    def test_too_old(self, invoke, factory):
        factory.versions["other"] = "0.29"
        result = invoke("-k", "other", "check-compatible-version", "-v", "0.30")

        assert result.exit_code == 1
        assert "expected version 0.30 cannot be greater than installed version 0.29" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_driver_error_reaches_boundary(self, invoke, factory):
        """A driver failure outside the cqlschema hierarchy still exits cleanly."""
        factory.fail_with = NoHostAvailable("all hosts down", {})
        result = invoke("check-compatible-version", "-v", "0.30")

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "cassandra request failed" in result.output
        assert "ERROR cqlschema.cli: cassandra request failed" in result.output
        assert "Traceback" not in result.output


class TestVerifyCompatibleVersion:
    def test_all_compatible(self, invoke, factory, persistence_yaml):
        factory.versions["cadence"] = "0.30"
        result = invoke("verify-compatible-version", "-c", str(persistence_yaml))

        assert result.exit_code == 0, result.output
        assert "Schema versions compatible for stores: default" in result.output

    def test_version_override(self, invoke, factory, persistence_yaml):
        factory.versions["cadence"] = "0.30"
        result = invoke(
            "verify-compatible-version", "-c", str(persistence_yaml), "--default-version", "0.31"
        )
        assert result.exit_code == 1
        assert "version mismatch for store 'default'" in result.output

    def test_no_cassandra_stores(self, invoke, factory, tmp_path):
        path = tmp_path / "sql.yaml"
        path.write_text(
            "persistence:\n"
            "  defaultStore: db\n"
            "  datastores:\n"
            "    db:\n"
            "      sql:\n"
            "        pluginName: postgres\n",
            encoding="utf-8",
        )
        result = invoke("verify-compatible-version", "-c", str(path))
        assert result.exit_code == 0, result.output
        assert "nothing to verify" in result.output
        assert factory.configs == []

    def test_missing_file(self, invoke, tmp_path):
        result = invoke("verify-compatible-version", "-c", str(tmp_path / "nope.yaml"))
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# Schema setup / update
# ---------------------------------------------------------------------------

class TestSchemaCommands:
    def test_setup_schema(self, invoke, factory, migrator):
        result = invoke("setup-schema", "-f", "schema.cql", "--version", "0.1", "-o")

        assert result.exit_code == 0, result.output
        keyspace, options = migrator.setups[0]
        assert keyspace == "cadence"
        assert options.schema_file == "schema.cql"
        assert options.initial_version == "0.1"
        assert options.overwrite is True
        assert options.disable_versioning is False
        assert invoke.loaded == ["default"]
        assert factory.clients[0].close_count == 1

    def test_update_schema_named_migrator(self, invoke, migrator):
        result = invoke("update-schema", "-d", "versioned/", "--dry-run", "--migrator", "alt")

        assert result.exit_code == 0, result.output
        _, options = migrator.updates[0]
        assert options.schema_dir == "versioned/"
        assert options.dry_run is True
        assert invoke.loaded == ["alt"]

    def test_migrator_from_settings(self, invoke, monkeypatch):
        monkeypatch.setenv("CQLSCHEMA_MIGRATOR", "from-env")
        result = invoke("update-schema", "-d", "versioned/")
        assert result.exit_code == 0, result.output
        assert invoke.loaded == ["from-env"]

    def test_migrator_failure(self, invoke, migrator):
        def boom(client, options):
            raise RuntimeError("bad manifest")

        migrator.update = boom
        result = invoke("update-schema", "-d", "versioned/")
        assert result.exit_code == 1
        assert "schema migration failed: bad manifest" in result.output


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

def test_handle_err_logs_once(caplog):
    err = VersionMismatchError("default", "cadence", "0.29", "0.30")
    with caplog.at_level(logging.ERROR, logger="cqlschema.cli"):
        converted = handle_err(err)

    assert isinstance(converted, SchemaCommandError)
    assert converted.error is err
    assert converted.exit_code == 1
    records = [r for r in caplog.records if r.name == "cqlschema.cli"]
    assert len(records) == 1
    assert records[0].error_type == "VersionMismatchError"
