"""
updatectl Settings - Runtime configuration using Pydantic Settings.

Loads daemon settings from environment variables and .env files. The list of
projects itself lives in the YAML file pointed to by ``config_path``.
"""

import os
import platform
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_config_path() -> Path:
    """Return the platform default location of updatectl.yaml."""
    if platform.system() == "Windows":
        return Path(os.environ.get("USERPROFILE", "~")) / "updatectl" / "updatectl.yaml"
    return Path("/etc/updatectl/updatectl.yaml")


class UpdatectlSettings(BaseSettings):
    """
    updatectl runtime settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="UPDATECTL_",  # All updatectl env vars must start with UPDATECTL_
    )

    config_path: Path = Field(
        default_factory=default_config_path,
        description="Path to the project configuration file (env: UPDATECTL_CONFIG_PATH)",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: UPDATECTL_LOG_LEVEL)",
    )

    # External process limits
    command_timeout_seconds: float = Field(
        default=1800,
        ge=0,
        description="Deadline for each git/build/pm2 invocation, 0 disables it (env: UPDATECTL_COMMAND_TIMEOUT_SECONDS)",
    )

    max_workers: int = Field(
        default=1,
        ge=1,
        description="Projects reconciled concurrently within a pass (env: UPDATECTL_MAX_WORKERS)",
    )


# Global settings instance
_settings: UpdatectlSettings | None = None


def get_settings() -> UpdatectlSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        UpdatectlSettings instance
    """
    global _settings
    if _settings is None:
        _settings = UpdatectlSettings()
    return _settings


def reload_settings() -> UpdatectlSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh UpdatectlSettings instance
    """
    global _settings
    _settings = UpdatectlSettings()
    return _settings
