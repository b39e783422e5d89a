"""
Tool-level settings for cqlschema.

Uses Pydantic BaseSettings for environment variable integration
and validation.  Connection parameters are not settings: they come from
CLI options (see ``cqlschema.resolver``) or from the engine's persistence
config.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (CQLSCHEMA_*)
3. .env file
4. Default values

Example:
    from cqlschema.config import get_config

    config = get_config()
    print(config.log_level)  # From CQLSCHEMA_LOG_LEVEL or default
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CQLSchemaSettings(BaseSettings):
    """
    Settings for the schema tool.

    Example:
        export CQLSCHEMA_LOG_LEVEL=debug
        export CQLSCHEMA_LOG_FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="CQLSCHEMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for cqlschema",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format (json for log shippers, text for console)",
    )
    migrator: str = Field(
        default="default",
        description="Entry point name of the schema-migration engine",
    )


# Global singleton
_config: Optional[CQLSchemaSettings] = None


def get_config(**overrides) -> CQLSchemaSettings:
    """
    Get the global settings instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = CQLSchemaSettings(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global settings (for testing)."""
    global _config
    _config = None
