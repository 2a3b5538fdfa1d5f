"""Configuration management utilities."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from ..core.constants import CONFIG_FILE_NAME, ENV_PREFIX
from ..models.settings import ManagerSettings, default_config_dir
from ..services.exceptions import ConfigurationError
from .logging_config import log_operation

logger = logging.getLogger(__name__)

# Environment variable suffix -> settings field
ENV_FIELDS = {
    "CONFIG_DIR": "config_dir",
    "LOG_DIR": "log_dir",
    "LOG_LEVEL": "log_level",
    "LOG_ROTATION_DAYS": "log_rotation_days",
    "STATE_FILE": "state_file",
    "CONFIG_FILE": "config_file",
    "MAX_CONTAINER_HISTORY": "max_unit_history",
    "PROJECT_NAME_PATTERN": "project_name_pattern",
    "READINESS_TIMEOUT": "readiness_timeout",
}

# Settings that may be stored in config.json
FILE_KEYS = [
    "log_dir",
    "state_file",
    "log_level",
    "log_rotation_days",
    "max_unit_history",
    "project_name_pattern",
    "readiness_timeout",
    "command_timeout",
    "compose_timeout",
    "pull_timeout",
    "stop_timeout",
    "poll_interval",
    "compose_command",
]


class ConfigManager:
    """Builds ManagerSettings from defaults, config.json, environment and CLI overrides.

    Later layers win. The environment is passed in, never read from the process.
    """

    def __init__(self, config_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None,
                 config_file: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_dir: Configuration directory; overrides DOCKER_OPS_CONFIG_DIR
            environ: Environment variables to read DOCKER_OPS_* values from
            config_file: Config file; overrides DOCKER_OPS_CONFIG_FILE
        """
        self.environ = dict(environ or {})
        env_dir = self.environ.get(f"{ENV_PREFIX}CONFIG_DIR")
        self.config_dir = Path(config_dir or env_dir or default_config_dir()).expanduser()
        env_file = self.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
        self.config_file = Path(config_file or env_file or self.config_dir / CONFIG_FILE_NAME).expanduser()

    def _env_values(self) -> Dict[str, Any]:
        values = {}
        for suffix, field_name in ENV_FIELDS.items():
            value = self.environ.get(f"{ENV_PREFIX}{suffix}")
            if value is not None and value.strip() != "":
                values[field_name] = value.strip()
        return values

    def load_file(self) -> Dict[str, Any]:
        """Settings stored in config.json, limited to known keys."""
        if not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read config file {self.config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {self.config_file} must contain a JSON object")
        return {key: value for key, value in data.items() if key in FILE_KEYS and value is not None}

    def init_config_file(self) -> Path:
        """Write a config file with default values if none exists."""
        if not self.config_file.exists():
            defaults = ManagerSettings(config_dir=self.config_dir)
            data = {key: getattr(defaults, key) for key in FILE_KEYS if key not in ("log_dir", "state_file")}
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(data, indent=2))
            log_operation(logger, logging.DEBUG, "CONFIG", "", f"Created config file: {self.config_file}")
        return self.config_file

    def build_settings(self, overrides: Optional[Dict[str, Any]] = None) -> ManagerSettings:
        """Layer all configuration sources into a settings object.

        Args:
            overrides: CLI values; None entries are ignored

        Raises:
            ConfigurationError: If a value fails validation
        """
        values: Dict[str, Any] = {"config_dir": self.config_dir, "config_file": self.config_file}
        values.update(self.load_file())
        env_values = self._env_values()
        env_values.pop("config_dir", None)
        env_values.pop("config_file", None)
        values.update(env_values)
        values.update({key: value for key, value in (overrides or {}).items() if value is not None})
        try:
            return ManagerSettings(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def get_value(self, key: str) -> Any:
        """Effective value of a setting."""
        settings = self.build_settings()
        if key not in ManagerSettings.model_fields:
            raise ConfigurationError(f"Unknown setting: {key}")
        return getattr(settings, key)

    def set_value(self, key: str, value: Any) -> None:
        """Persist a setting to config.json after validating it."""
        if key not in FILE_KEYS:
            raise ConfigurationError(
                f"Setting '{key}' cannot be stored. Valid keys: {', '.join(FILE_KEYS)}"
            )
        data = self.load_file()
        data[key] = value
        try:
            validated = ManagerSettings(config_dir=self.config_dir, **data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid value for {key}: {e}") from e
        data[key] = getattr(validated, key)
        if isinstance(data[key], Path):
            data[key] = str(data[key])
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(json.dumps(data, indent=2))
        log_operation(logger, logging.INFO, "CONFIG", "", f"Set {key} = {data[key]}")
