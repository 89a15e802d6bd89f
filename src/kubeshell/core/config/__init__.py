"""Configuration management with Pydantic validation."""

from kubeshell.core.config.models import (
    CONFIG_FILE_NAME,
    HISTORY_FILE_NAME,
    Alias,
    ConfigSaveError,
    ShellConfig,
    ShellConfigStore,
    load_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "HISTORY_FILE_NAME",
    "Alias",
    "ConfigSaveError",
    "ShellConfig",
    "ShellConfigStore",
    "load_config",
]
