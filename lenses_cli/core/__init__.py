"""Core configuration for lenses-cli."""

from lenses_cli.core.config import (
    CONFIG_FILE_NAME,
    Settings,
    console,
    err_console,
    find_config_file,
    load_config,
    resolve_client_config,
)
from lenses_cli.core.models import CLIConfig, ContextConfig

__all__ = [
    "CONFIG_FILE_NAME",
    "CLIConfig",
    "ContextConfig",
    "Settings",
    "console",
    "err_console",
    "find_config_file",
    "load_config",
    "resolve_client_config",
]
