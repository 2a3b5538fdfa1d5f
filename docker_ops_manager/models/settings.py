"""Manager settings model."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..core.constants import (
    COMPOSE_TIMEOUT,
    CONFIG_FILE_NAME,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_CONFIG_DIR_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_ROTATION_DAYS,
    DEFAULT_MAX_UNIT_HISTORY,
    DEFAULT_PROJECT_NAME_PATTERN,
    DEFAULT_STOP_TIMEOUT,
    LOG_DIR_NAME,
    LOG_LEVELS,
    POLL_INTERVAL,
    PULL_TIMEOUT,
    STATE_FILE_NAME,
)


def default_config_dir() -> Path:
    """Default configuration directory under the user's home."""
    return Path.home() / ".config" / DEFAULT_CONFIG_DIR_NAME


class ManagerSettings(BaseModel):
    """Operating parameters shared by every component.

    Built once at startup by ``ConfigManager`` and passed explicitly to the
    store, runtime, prober and controller.
    """
    config_dir: Path = Field(default_factory=default_config_dir)
    log_dir: Optional[Path] = None
    state_file: Optional[Path] = None
    config_file: Optional[Path] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_rotation_days: int = Field(default=DEFAULT_LOG_ROTATION_DAYS, ge=0)
    max_unit_history: int = Field(default=DEFAULT_MAX_UNIT_HISTORY, ge=1)
    project_name_pattern: str = DEFAULT_PROJECT_NAME_PATTERN
    readiness_timeout: Optional[int] = Field(default=None, gt=0)
    command_timeout: int = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0)
    compose_timeout: int = Field(default=COMPOSE_TIMEOUT, gt=0)
    pull_timeout: int = Field(default=PULL_TIMEOUT, gt=0)
    stop_timeout: int = Field(default=DEFAULT_STOP_TIMEOUT, ge=0)
    poll_interval: float = Field(default=POLL_INTERVAL, gt=0)
    compose_command: str = DEFAULT_COMPOSE_COMMAND

    @model_validator(mode="after")
    def _fill_paths(self) -> "ManagerSettings":
        if self.log_dir is None:
            self.log_dir = self.config_dir / LOG_DIR_NAME
        if self.state_file is None:
            self.state_file = self.config_dir / STATE_FILE_NAME
        if self.config_file is None:
            self.config_file = self.config_dir / CONFIG_FILE_NAME
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return self

    def state_config(self) -> dict:
        """Tool parameters echoed into the state file for diagnostics."""
        return {
            "log_level": self.log_level,
            "log_rotation_days": self.log_rotation_days,
            "max_container_history": self.max_unit_history,
        }
