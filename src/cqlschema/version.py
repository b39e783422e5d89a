"""
Schema version parsing and the single-keyspace compatibility check.

Versions are ``major[.minor[.patch]]`` with an optional ``v`` prefix and are
ordered numerically per component, so ``0.30`` is newer than ``0.9``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from cqlschema.errors import ConfigError, VersionMismatchError, VersionReadError

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


@dataclass(frozen=True, order=True)
class SchemaVersion:
    """Immutable, totally ordered schema version."""

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "SchemaVersion":
        """Parse ``"1.2"``, ``"v0.30"`` or ``"1.2.3"``; raises ValueError otherwise."""
        match = _VERSION_RE.match(text.strip()) if text else None
        if not match:
            raise ValueError(f"invalid schema version: {text!r}")
        major, minor, patch = match.groups()
        return cls(int(major), int(minor or 0), int(patch or 0))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``."""
    va, vb = SchemaVersion.parse(a), SchemaVersion.parse(b)
    return (va > vb) - (va < vb)


class VersionReader(Protocol):  # pragma: no cover - structural typing helper
    def query_installed_version(self, keyspace: str) -> str: ...


def verify_installed_version(
    client: VersionReader,
    keyspace: str,
    expected_version: str,
    store: str = "",
) -> str:
    """
    Fail if the version installed in ``keyspace`` is older than expected.

    Newer installed versions are accepted: after a code rollback the schema
    is a superset of what the older binary needs.

    Returns:
        The installed version string.

    Raises:
        ConfigError: expected_version is malformed
        VersionReadError: installed version missing or malformed
        VersionMismatchError: installed < expected
    """
    try:
        expected = SchemaVersion.parse(expected_version)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    installed_version = client.query_installed_version(keyspace)
    try:
        installed = SchemaVersion.parse(installed_version)
    except ValueError as e:
        raise VersionReadError(keyspace, str(e)) from e

    logger.debug(
        "Schema version for keyspace %s: installed=%s expected=%s",
        keyspace, installed_version, expected_version,
    )
    if installed < expected:
        raise VersionMismatchError(
            store=store or keyspace,
            keyspace=keyspace,
            installed=installed_version,
            expected=expected_version,
        )
    return installed_version
