"""
Pytest configuration and fixtures for cqlschema tests.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, Optional

import pytest

from cqlschema.config import reset_config
from cqlschema.errors import BackendConnectionError, VersionReadError
from cqlschema.logger import ROOT_LOGGER
from cqlschema.models import ConnectionConfig


# ============================================================================
# Fake client
# ============================================================================


class FakeClient:
    """In-memory stand-in for CQLClient that records every call."""

    def __init__(
        self,
        config: ConnectionConfig,
        versions: Dict[str, str],
        fail_with: Optional[Exception] = None,
    ):
        self.config = config
        self.versions = versions
        self.fail_with = fail_with
        self.calls: List[tuple] = []
        self.close_count = 0

    def __enter__(self) -> "FakeClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self.close_count += 1

    def query_installed_version(self, keyspace: str) -> str:
        self.calls.append(("query_installed_version", keyspace))
        if self.fail_with is not None:
            raise self.fail_with
        if keyspace not in self.versions:
            raise VersionReadError(keyspace, "no schema version recorded")
        return self.versions[keyspace]

    def create_keyspace(self, name: str, replicas: int = 0) -> None:
        self.calls.append(("create_keyspace", name, replicas))
        if self.fail_with is not None:
            raise self.fail_with

    def create_nts_keyspace(self, name: str, datacenter: str, replicas: int = 0) -> None:
        self.calls.append(("create_nts_keyspace", name, datacenter, replicas))
        if self.fail_with is not None:
            raise self.fail_with


class FakeClientFactory:
    """Callable matching ``ClientFactory``; keeps every config and client."""

    def __init__(self):
        self.versions: Dict[str, str] = {}
        self.fail_with: Optional[Exception] = None
        self.connect_error: Optional[Exception] = None
        self.configs: List[ConnectionConfig] = []
        self.clients: List[FakeClient] = []

    def __call__(self, config: ConnectionConfig) -> FakeClient:
        self.configs.append(config)
        if self.connect_error is not None:
            raise self.connect_error
        client = FakeClient(config, self.versions, self.fail_with)
        self.clients.append(client)
        return client


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch) -> None:
    """Keep tool settings and CASSANDRA_* variables out of each test."""
    for key in list(os.environ):
        if key.startswith(("CASSANDRA_", "CQLSCHEMA_")):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def connect_failure() -> BackendConnectionError:
    return BackendConnectionError("unable to create CQL client: no hosts available")


@pytest.fixture
def base_config() -> ConnectionConfig:
    """A valid, already-normalized connection config."""
    return ConnectionConfig(
        hosts=("10.0.0.1", "10.0.0.2"),
        port=9042,
        keyspace="cadence",
        num_replicas=3,
        timeout=15.0,
        connect_timeout=5.0,
    )


@pytest.fixture
def persistence_yaml(tmp_path):
    """Engine config with a Cassandra default store and an SQL visibility store."""
    path = tmp_path / "development.yaml"
    path.write_text(
        """\
persistence:
  defaultStore: cass-default
  visibilityStore: mysql-visibility
  datastores:
    cass-default:
      nosql:
        pluginName: cassandra
        hosts: "127.0.0.1, 127.0.0.2"
        keyspace: cadence
        user: cadence
        password: secret
    mysql-visibility:
      sql:
        pluginName: mysql
        databaseName: cadence_visibility
""",
        encoding="utf-8",
    )
    return path
