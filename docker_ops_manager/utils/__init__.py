"""Utilities for Docker Ops Manager."""

from .config_manager import ConfigManager
from .logging_config import log_operation, rotate_logs, setup_logging

__all__ = [
    'ConfigManager',
    'log_operation',
    'rotate_logs',
    'setup_logging'
]
