"""Custom exceptions for Docker Ops Manager."""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all Docker Ops Manager errors."""

    pass


class DockerServiceError(ServiceError):
    """Exception raised when the Docker daemon cannot be reached."""

    pass


class StateStoreError(ServiceError):
    """Exception raised when the state document cannot be read or written."""

    pass


class ConfigurationError(ServiceError):
    """Exception raised when manager settings are invalid."""

    pass


class LifecycleError(ServiceError):
    """Base exception for lifecycle operations on a unit."""

    pass


class ConfigInvalidError(LifecycleError):
    """Exception raised when a config document is missing or unparseable."""

    pass


class NoUnitsFoundError(LifecycleError):
    """Exception raised when a config document declares no units."""

    pass


class InvalidNameError(LifecycleError):
    """Exception raised when a unit name violates Docker naming rules."""

    pass


class UnitNotFoundError(LifecycleError):
    """Exception raised when a unit is not declared or does not exist."""

    pass


class AlreadyExistsError(LifecycleError):
    """Exception raised when generating a unit whose container already exists."""

    pass


class UnsupportedDialectError(LifecycleError):
    """Exception raised for a config dialect with no creation routine."""

    pass


class RemovalFailedError(LifecycleError):
    """Exception raised when forced removal keeps failing."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class RuntimeCommandFailedError(LifecycleError):
    """Exception raised when a docker command exits non-zero.

    Attributes:
        exit_code: Real exit code of the command
        output: Captured stdout and stderr
        hint: Advisory diagnosis of the output, if any pattern matched
    """

    def __init__(self, message: str, exit_code: int, output: str = "", hint: Optional[object] = None):
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output
        self.hint = hint
