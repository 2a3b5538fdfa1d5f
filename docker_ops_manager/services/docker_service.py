"""Docker service for checking the Docker daemon through the SDK."""

import logging
from typing import Any

import docker
import docker.errors

from .exceptions import DockerServiceError

logger = logging.getLogger(__name__)


class DockerService:
    """Service for talking to the Docker daemon directly."""

    def __init__(self):
        """Initialize Docker service and test connection."""
        try:
            self.client = docker.from_env()
            self.client.ping()
        except docker.errors.DockerException as e:
            if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                raise DockerServiceError(
                    "Docker daemon is not running. Please start Docker Desktop or the Docker service."
                ) from e
            else:
                raise DockerServiceError(f"Failed to connect to Docker: {e}") from e

    def version(self) -> dict[str, Any]:
        """Get version information reported by the daemon.

        Returns:
            Version mapping (Version, ApiVersion, Os, Arch, ...)

        Raises:
            DockerServiceError: If the daemon cannot be queried
        """
        try:
            return self.client.version()
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to query Docker version: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error querying Docker version: {e}") from e

    def container_count(self) -> int:
        """Count all containers known to the daemon.

        Returns:
            Number of containers, running or not

        Raises:
            DockerServiceError: If listing fails
        """
        try:
            return len(self.client.containers.list(all=True))
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to list containers: {e}") from e
        except Exception as e:
            raise DockerServiceError(f"Unexpected error listing containers: {e}") from e
