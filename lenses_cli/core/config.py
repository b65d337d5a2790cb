"""Configuration, constants, and settings for lenses-cli.

Settings come from three places, highest precedence first: command-line
flags, ``LENSES_*`` environment variables (a ``.env`` file is loaded at
import) and the current context of the YAML config file.

Config file search order:
- ``$LENSES_CONFIG_FILE``
- ``./lenses-cli.yml``
- ``~/.lenses/lenses-cli.yml``

String values in the config file may reference environment variables as
``$VAR`` or ``${VAR}``.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import dotenv
import structlog
import yaml
from pydantic import ValidationError
from rich.console import Console

from lenses_cli.api.auth import BasicAuthentication
from lenses_cli.api.connection import ClientConfig
from lenses_cli.api.errors import ConfigurationError
from lenses_cli.core.models import CLIConfig

dotenv.load_dotenv()

logger = structlog.get_logger(__name__)

CONFIG_FILE_NAME = "lenses-cli.yml"
CONFIG_FILE_ENV = "LENSES_CONFIG_FILE"

# Output
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_TRUE_VALUES = {"1", "true", "yes", "on"}


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: str) -> str:
    """
    Replace environment variable references in a string.

    ``${VAR}`` is replaced anywhere in the string; a string that is exactly
    ``$VAR`` is replaced as a whole. Unknown ``${VAR}`` references are kept.
    """
    if not isinstance(value, str):
        return value

    result = re.sub(
        r"\$\{([^}]+)\}",
        lambda m: os.getenv(m.group(1), m.group(0)),
        value,
    )

    if result.startswith("$") and not result.startswith("${"):
        env_var = result[1:]
        if env_var.isidentifier():
            return os.getenv(env_var, result)

    return result


def _process_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _process_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_process_value(item) for item in value]
    if isinstance(value, str):
        return substitute_env_vars(value)
    return value


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


# =============================================================================
# Config File
# =============================================================================


def get_default_config_dir() -> Path:
    """Get the default config directory (~/.lenses/)."""
    return Path.home() / ".lenses"


def get_config_search_paths(start_path: Path | None = None) -> list[Path]:
    return [start_path or Path.cwd(), get_default_config_dir()]


def find_config_file(explicit: str | None = None, *, start_path: Path | None = None) -> Path | None:
    """
    Find the config file to use.

    Args:
        explicit: Path given on the command line; must exist when given
        start_path: Directory searched before the home config dir (default: cwd)

    Returns:
        Path to the config file, or None if there is none

    Raises:
        ConfigurationError: If an explicitly requested file does not exist
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"config file [{explicit}] does not exist")
        return path

    env_path = os.getenv(CONFIG_FILE_ENV)
    if env_path:
        path = Path(env_path).expanduser()
        if path.is_file():
            return path
        logger.warning("config_file_env_missing", path=env_path)

    for search_path in get_config_search_paths(start_path):
        candidate = search_path / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    return None


def load_config(path: Path) -> CLIConfig:
    """
    Load and validate a config file.

    Raises:
        ConfigurationError: If the file is not valid YAML or does not match the schema
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"config file [{path}]: {e}") from e

    if not raw_config:
        logger.warning("config_file_empty", path=str(path))
        return CLIConfig()
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"config file [{path}]: expected a mapping")

    try:
        config = CLIConfig.model_validate(_process_value(raw_config))
    except ValidationError as e:
        raise ConfigurationError(f"config file [{path}]: {e}") from e

    logger.debug("config_file_loaded", path=str(path), contexts=len(config.contexts))
    return config


# =============================================================================
# Settings
# =============================================================================


@dataclass
class Settings:
    """Connection settings from flags or the environment.

    Every field left as None falls through to the config file.

    Attributes:
        host: Lenses base URL
        token: Session token
        user: Basic authentication user name
        password: Basic authentication password
        timeout: Request timeout duration string
        insecure: Skip TLS verification
        debug: Trace requests and responses
        config_file: Explicit config file path
        context: Config file context to use
    """

    host: str | None = None
    token: str | None = None
    user: str | None = None
    password: str | None = None
    timeout: str | None = None
    insecure: bool | None = None
    debug: bool | None = None
    config_file: str | None = None
    context: str | None = None

    @classmethod
    def from_environment(cls) -> "Settings":
        """Create settings from ``LENSES_*`` environment variables."""
        return cls(
            host=os.environ.get("LENSES_HOST") or None,
            token=os.environ.get("LENSES_TOKEN") or None,
            user=os.environ.get("LENSES_USER") or None,
            password=os.environ.get("LENSES_PASSWORD") or None,
            timeout=os.environ.get("LENSES_TIMEOUT") or None,
            insecure=_env_flag("LENSES_INSECURE") or None,
            debug=_env_flag("LENSES_DEBUG") or None,
            config_file=os.environ.get(CONFIG_FILE_ENV) or None,
            context=os.environ.get("LENSES_CONTEXT") or None,
        )

    def merged_over(self, fallback: "Settings") -> "Settings":
        """Settings where every unset field of this instance is taken from ``fallback``."""
        return Settings(
            **{
                name: value if value is not None else getattr(fallback, name)
                for name, value in vars(self).items()
            }
        )

    @property
    def has_basic_credentials(self) -> bool:
        return bool(self.user and self.password)


def resolve_client_config(settings: Settings, *, start_path: Path | None = None) -> ClientConfig:
    """
    Build the client configuration from settings and the config file.

    Settings win over the selected context field by field. Credentials given
    as settings replace the context's authentication method.

    Raises:
        ConfigurationError: If the requested context does not exist, or
            nothing at all is configured
    """
    path = find_config_file(settings.config_file, start_path=start_path)
    client_config = ClientConfig()

    if path is not None:
        file_config = load_config(path)
        if settings.context and not file_config.set_current(settings.context):
            raise ConfigurationError(f"context [{settings.context}] does not exist")
        if file_config.current_context_exists():
            client_config = file_config.get_current().to_client_config()
    elif settings.context:
        raise ConfigurationError(
            f"context [{settings.context}] requested but no {CONFIG_FILE_NAME} was found"
        )

    if settings.host is not None:
        client_config.host = settings.host
    if settings.token is not None:
        client_config.token = settings.token
    if settings.timeout is not None:
        client_config.timeout = settings.timeout
    if settings.insecure is not None:
        client_config.insecure = settings.insecure
    if settings.debug is not None:
        client_config.debug = settings.debug
    if settings.has_basic_credentials:
        client_config.authentication = BasicAuthentication(
            username=settings.user or "", password=settings.password or ""
        )

    if not client_config.host:
        raise ConfigurationError(
            "no Lenses host configured: pass --host, set LENSES_HOST "
            f"or create {CONFIG_FILE_NAME}"
        )
    return client_config
