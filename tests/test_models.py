"""
Tests for connection and persistence models.
"""

import pytest
from pydantic import ValidationError

from cqlschema.errors import ConfigError
from cqlschema.models import (
    ConnectionConfig,
    DataStore,
    PersistenceConfig,
    TLSConfig,
    split_csv,
    validate_connection_config,
)


class TestSplitCsv:
    """Test host/list splitting."""

    def test_comma_string(self):
        assert split_csv("a, b,,c ") == ("a", "b", "c")

    def test_sequence(self):
        assert split_csv(["a", " ", "b"]) == ("a", "b")

    def test_none(self):
        assert split_csv(None) == ()


class TestConnectionConfig:
    """Test ConnectionConfig model."""

    def test_hosts_from_string(self):
        """A comma-separated host string should become an ordered tuple."""
        cfg = ConnectionConfig(hosts="h1,h2", keyspace="ks")
        assert cfg.hosts == ("h1", "h2")

    def test_is_frozen(self):
        cfg = ConnectionConfig(hosts=("h1",), keyspace="ks")
        with pytest.raises(ValidationError):
            cfg.keyspace = "other"

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            ConnectionConfig(hosts=("h1",), keyspace="ks", datacenter="dc1")

    def test_rejects_negative_port(self):
        with pytest.raises(ValidationError):
            ConnectionConfig(hosts=("h1",), keyspace="ks", port=-1)

    def test_password_not_in_repr(self):
        cfg = ConnectionConfig(hosts=("h1",), keyspace="ks", password="hunter2")
        assert "hunter2" not in repr(cfg)

    def test_with_keyspace_returns_new_instance(self, base_config):
        derived = base_config.with_keyspace("system")
        assert derived.keyspace == "system"
        assert base_config.keyspace == "cadence"
        assert derived.hosts == base_config.hosts
        assert derived.num_replicas == base_config.num_replicas

    def test_with_timeouts(self, base_config):
        derived = base_config.with_timeouts(30.0, 2.0)
        assert (derived.timeout, derived.connect_timeout) == (30.0, 2.0)
        assert (base_config.timeout, base_config.connect_timeout) == (15.0, 5.0)


class TestValidateConnectionConfig:
    """Test validation and defaulting."""

    def test_missing_hosts(self):
        with pytest.raises(ConfigError, match="endpoint"):
            validate_connection_config(ConnectionConfig(keyspace="ks"))

    def test_blank_hosts(self):
        with pytest.raises(ConfigError, match="endpoint"):
            validate_connection_config(ConnectionConfig(hosts=" , ", keyspace="ks"))

    def test_missing_keyspace(self):
        with pytest.raises(ConfigError, match="keyspace"):
            validate_connection_config(ConnectionConfig(hosts=("h1",)))

    def test_applies_defaults(self):
        raw = ConnectionConfig(hosts=("h1",), keyspace="ks", timeout=0, connect_timeout=0)
        cfg = validate_connection_config(raw)
        assert cfg.port == 9042
        assert cfg.num_replicas == 1
        assert cfg.timeout == 30.0
        assert cfg.connect_timeout == 2.0

    def test_does_not_modify_input(self):
        raw = ConnectionConfig(hosts=("h1",), keyspace="ks")
        validate_connection_config(raw)
        assert raw.port == 0
        assert raw.num_replicas == 0

    def test_idempotent_on_valid_config(self, base_config):
        """Validating an already-normalized config leaves it unchanged."""
        once = validate_connection_config(base_config)
        twice = validate_connection_config(once)
        assert once == base_config
        assert twice == once
        assert twice.port == 9042
        assert twice.num_replicas == 3


class TestPersistenceConfig:
    """Test persistence descriptors."""

    def test_from_yaml_full_engine_config(self, persistence_yaml):
        persistence = PersistenceConfig.from_yaml(persistence_yaml)
        assert persistence.default_store == "cass-default"
        assert persistence.visibility_store == "mysql-visibility"

        nosql = persistence.datastores["cass-default"].nosql
        assert nosql.plugin_name == "cassandra"
        assert nosql.hosts == ("127.0.0.1", "127.0.0.2")
        assert persistence.datastores["mysql-visibility"].nosql is None

    def test_from_yaml_bare_section(self, tmp_path):
        path = tmp_path / "p.yaml"
        path.write_text("defaultStore: default\ndatastores: {}\n", encoding="utf-8")
        persistence = PersistenceConfig.from_yaml(path)
        assert persistence.default_store == "default"
        assert persistence.visibility_store is None

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="unable to read"):
            PersistenceConfig.from_yaml(tmp_path / "nope.yaml")

    def test_from_yaml_invalid(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("datastores: {}\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid persistence config"):
            PersistenceConfig.from_yaml(path)

    def test_nosql_to_connection_config(self):
        ds = DataStore.model_validate({
            "nosql": {
                "pluginName": "cassandra",
                "hosts": "h1,h2",
                "port": 9142,
                "keyspace": "cadence",
                "protoVersion": 4,
                "allowedAuthenticators": ["org.apache.cassandra.auth.PasswordAuthenticator"],
                "tls": {"enabled": True, "caFile": "/etc/ca.pem", "serverName": "cass"},
            }
        })
        cfg = ds.nosql.to_connection_config()
        assert cfg.hosts == ("h1", "h2")
        assert cfg.port == 9142
        assert cfg.protocol_version == 4
        assert cfg.allowed_authenticators == (
            "org.apache.cassandra.auth.PasswordAuthenticator",
        )
        assert cfg.tls == TLSConfig(enabled=True, ca_file="/etc/ca.pem", server_name="cass")
