"""Service layer for the Docker daemon and the error taxonomy."""

from .docker_service import DockerService
from .exceptions import (
    ServiceError,
    DockerServiceError,
    StateStoreError,
    ConfigurationError,
    LifecycleError,
    ConfigInvalidError,
    NoUnitsFoundError,
    InvalidNameError,
    UnitNotFoundError,
    AlreadyExistsError,
    UnsupportedDialectError,
    RemovalFailedError,
    RuntimeCommandFailedError,
)

__all__ = [
    "DockerService",
    "ServiceError",
    "DockerServiceError",
    "StateStoreError",
    "ConfigurationError",
    "LifecycleError",
    "ConfigInvalidError",
    "NoUnitsFoundError",
    "InvalidNameError",
    "UnitNotFoundError",
    "AlreadyExistsError",
    "UnsupportedDialectError",
    "RemovalFailedError",
    "RuntimeCommandFailedError",
]
