"""
Configuration for the catalog core.

Uses pydantic-settings for environment variable loading (prefix MVN_).

URN limits and the mvn type whitelist are constants in identity.urn and are
deliberately not configurable.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class CoreSettings(BaseSettings):
    """Core configuration loaded from environment."""

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["json", "text"] = Field(default="text", description="Log output format")

    # Aggregation
    recompute_on_unit_write: bool = Field(
        default=True,
        description="Recompute the parent series after every unit add/update/delete",
    )

    # Permissions
    require_user_urn_type: bool = Field(
        default=True,
        description="Require grantees and grantors to be urn:mvn:user URNs",
    )

    model_config = {"env_prefix": "MVN_"}


# Default settings instance
_default_settings: CoreSettings | None = None


def get_settings() -> CoreSettings:
    """Get settings loaded from the environment, once per process."""
    global _default_settings
    if _default_settings is None:
        _default_settings = CoreSettings()
    return _default_settings
