"""Configuration loader for gcp-secret-cleaner."""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .models import CleanerConfig, ExecutionMode, RetentionPolicy

logger = logging.getLogger(__name__)

DEFAULT_KEEP_DISABLED_COUNT = 2


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    """Default config location following the XDG Base Directory layout."""
    return Path.home() / ".config" / "gcp-secret-cleaner" / "config.yml"


def resolve_config_path(explicit_path: Optional[str] = None) -> Tuple[Optional[Path], str]:
    """
    Work out which config file to read, if any.

    Priority order:
    1. Explicit path (--config flag)
    2. SECRET_CLEANER_CONFIG environment variable
    3. Default location: ~/.config/gcp-secret-cleaner/config.yml

    Returns:
        (path, source) where path is None if no config file applies and
        source is one of "flag", "env", "default" or "none"

    Raises:
        ConfigError: If an explicitly requested file doesn't exist
    """
    if explicit_path:
        path = Path(explicit_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Configuration file not found at: {path}")
        return path, "flag"

    env_path = os.getenv("SECRET_CLEANER_CONFIG")
    if env_path:
        path = Path(env_path).expanduser()
        if not path.is_file():
            raise ConfigError(
                f"Configuration file from SECRET_CLEANER_CONFIG not found at: {path}"
            )
        return path, "env"

    default_config = default_config_path()
    if default_config.is_file():
        logger.debug(f"Using default config location: {default_config}")
        return default_config, "default"

    return None, "none"


def _section(config: Dict[str, Any], name: str, config_path: Path) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' in config at {config_path} must be a mapping")
    return section


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Load and validate a YAML config file.

    Returns:
        Dict with the optional sections authentication, gcp, cleaner and
        log_shipping

    Raises:
        ConfigError: If the file is unreadable, invalid or references a
            missing service account file
    """
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    auth = _section(config, "authentication", config_path)
    if auth:
        if auth.get("type") != "service_account":
            raise ConfigError(
                f"Unsupported authentication type: {auth.get('type')}\n"
                f"Only 'service_account' is supported."
            )

        service_account_path = auth.get("service_account_path")
        if not service_account_path:
            raise ConfigError(
                "Missing 'authentication.service_account_path' in config\n"
                "Please specify the absolute path to your service account JSON file."
            )

        if not os.path.isfile(service_account_path):
            raise ConfigError(
                f"Service account file not found at: {service_account_path}\n"
                f"Please ensure the file exists or update the path in {config_path}"
            )

    _section(config, "gcp", config_path)
    _section(config, "cleaner", config_path)

    shipping = _section(config, "log_shipping", config_path)
    if shipping and not (shipping.get("url") and shipping.get("token_secret")):
        raise ConfigError("'log_shipping' requires both 'url' and 'token_secret'")

    logger.info(f"Configuration loaded successfully from {config_path}")
    return config


def _keep_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Keep count must be an integer, got {value!r}")
    if value < 0:
        raise ConfigError(f"Keep count must be non-negative, got {value}")
    return value


def _flag(section: Dict[str, Any], key: str) -> bool:
    value = section.get(key, False)
    if not isinstance(value, bool):
        raise ConfigError(f"'cleaner.{key}' must be true or false, got {value!r}")
    return value


def build_config(
    project_id: Optional[str] = None,
    keep: Optional[int] = None,
    dry_run: bool = False,
    debug: bool = False,
    continue_on_error: bool = False,
    config_path: Optional[str] = None,
) -> Optional[CleanerConfig]:
    """
    Merge CLI values, environment and config file into a CleanerConfig.

    CLI values win over the GCP_PROJECT environment variable, which wins
    over the config file. Boolean flags are switched on by either the CLI or
    the config file.

    Returns:
        CleanerConfig, or None if no project ID is available from any source

    Raises:
        ConfigError: If the config file or any value is invalid
    """
    path, source = resolve_config_path(config_path)
    file_config = load_config_file(path) if path else {}
    logger.debug(f"Config file source: {source}")

    gcp = file_config.get("gcp") or {}
    cleaner = file_config.get("cleaner") or {}
    auth = file_config.get("authentication") or {}
    shipping = file_config.get("log_shipping") or {}

    project = project_id or os.getenv("GCP_PROJECT") or gcp.get("project_id")
    if not project:
        return None

    if keep is None:
        keep = cleaner.get("keep_disabled_count", DEFAULT_KEEP_DISABLED_COUNT)
    keep = _keep_count(keep)

    dry_run = _flag(cleaner, "dry_run") or dry_run
    continue_on_error = _flag(cleaner, "continue_on_error") or continue_on_error

    return CleanerConfig(
        project_id=str(project),
        retention=RetentionPolicy(keep_disabled_count=keep),
        mode=ExecutionMode.DRY_RUN if dry_run else ExecutionMode.LIVE,
        debug=debug,
        continue_on_error=continue_on_error,
        service_account_path=auth.get("service_account_path"),
        log_shipping_url=shipping.get("url"),
        log_token_secret=shipping.get("token_secret"),
    )
