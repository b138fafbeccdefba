"""Configuration loading and management."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from taskpilot.errors import ConfigurationError
from taskpilot.tools.permission import PermissionMode

logger = logging.getLogger(__name__)

# Load .env files
load_dotenv()

CONFIG_FILE_NAME = "taskpilot.yaml"
LOCAL_CONFIG_FILE_NAME = "taskpilot-local.yaml"
ENV_PREFIX = "TASKPILOT_"

DEFAULT_PROVIDER = "echo"
DEFAULT_DATA_DIR = ".taskpilot"


@dataclass(slots=True)
class TaskpilotConfig:
    """Merged configuration from all sources.

    Priority: CLI args > env vars > local config > project config > user config > defaults
    """
    # Provider
    provider: str = DEFAULT_PROVIDER
    model: str = ""

    # Workspace and state
    workspace: str = ""
    data_dir: str = DEFAULT_DATA_DIR
    permission_mode: str = PermissionMode.MANUAL_APPROVAL.value
    user_instructions: str = ""

    # Loop tuning
    max_context_tokens: int = 200_000
    tick_interval: float = 0.01
    command_poll_limit: int = 300
    command_poll_interval: float = 0.1

    # Diagnostics
    debug: bool = False
    log_dir: str = "logs"

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace or os.getcwd()).resolve()

    @property
    def history_dir(self) -> Path:
        data_dir = Path(self.data_dir)
        return data_dir if data_dir.is_absolute() else self.workspace_path / data_dir


def get_user_config_path() -> Path:
    """User-level config (~/taskpilot.yaml)."""
    return Path.home() / CONFIG_FILE_NAME


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _coerce(name: str, value: Any, default: Any) -> Any:
    if value is None:
        return None
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{name}': {value!r}") from e
    return str(value) if isinstance(default, str) else value


def _apply_dict(config: TaskpilotConfig, data: dict[str, Any]) -> None:
    """Apply dictionary values to config, only for known fields."""
    defaults = TaskpilotConfig()
    for f in fields(TaskpilotConfig):
        if f.name in data and data[f.name] is not None:
            setattr(config, f.name, _coerce(f.name, data[f.name], getattr(defaults, f.name)))


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for f in fields(TaskpilotConfig):
        value = os.environ.get(ENV_PREFIX + f.name.upper())
        if value:
            overrides[f.name] = value
    return overrides


def validate_config(config: TaskpilotConfig) -> None:
    try:
        PermissionMode(config.permission_mode)
    except ValueError:
        choices = ", ".join(m.value for m in PermissionMode)
        raise ConfigurationError(
            f"Unknown permission_mode '{config.permission_mode}' (expected one of {choices})"
        ) from None
    if config.tick_interval <= 0:
        raise ConfigurationError("tick_interval must be positive")
    if config.command_poll_limit < 1:
        raise ConfigurationError("command_poll_limit must be at least 1")


def load_config(
    *,
    cli_args: dict[str, Any] | None = None,
    config_file: str | Path | None = None,
    working_dir: str | Path | None = None,
) -> TaskpilotConfig:
    """Load configuration from all sources with proper priority.

    ``config_file`` replaces the project-level ``taskpilot.yaml``.
    """
    config = TaskpilotConfig()
    cli_args = cli_args or {}
    base = Path(working_dir) if working_dir else Path.cwd()

    # 1. User-level config
    _apply_dict(config, load_yaml_config(get_user_config_path()))

    # 2. Project-level config
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        _apply_dict(config, load_yaml_config(path))
    else:
        _apply_dict(config, load_yaml_config(base / CONFIG_FILE_NAME))

    # 3. Local overrides, usually kept out of version control
    _apply_dict(config, load_yaml_config(base / LOCAL_CONFIG_FILE_NAME))

    # 4. Environment variables
    _apply_dict(config, _env_overrides())

    # 5. CLI args (highest priority)
    _apply_dict(config, cli_args)

    if not config.workspace:
        config.workspace = str(base)
    validate_config(config)
    return config
