"""Narrow interface over the docker CLI."""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..models.settings import ManagerSettings
from ..services.exceptions import RuntimeCommandFailedError
from .command_executor import CommandExecutor, CommandResult
from .constants import DEFAULT_LOG_TAIL, DOCKER_BINARY
from .diagnostics import diagnose

logger = logging.getLogger(__name__)


@dataclass
class RuntimeContainer:
    """One row of the runtime inventory."""
    name: str
    status_phrase: str  # e.g. "Up 3 minutes", "Exited (0) 2 hours ago"
    id: str


class DockerRuntime:
    """Docker operations used by the lifecycle controller and reconciler.

    Every call goes through the CommandExecutor, so tests can replace
    either this class or the executor with a mock.
    """

    def __init__(self, executor: CommandExecutor, settings: ManagerSettings):
        self.executor = executor
        self.settings = settings

    def _docker(self, operation: str, subject: Optional[str], *args: str,
                timeout: Optional[int] = None, quiet: bool = False) -> CommandResult:
        return self.executor.execute(operation, subject, [DOCKER_BINARY, *args],
                                     timeout=timeout, quiet=quiet)

    # Queries

    def exists(self, name: str) -> bool:
        """Check whether a container with this exact name exists."""
        result = self._docker("INSPECT", name, "ps", "-a", "--format", "{{.Names}}", quiet=True)
        if result.ok and name in result.output.split():
            return True
        result = self._docker("INSPECT", name, "inspect", name, quiet=True)
        return result.ok and result.output.strip() not in ("", "[]")

    def is_running(self, name: str) -> bool:
        """Check whether the container is running."""
        result = self._docker("INSPECT", name, "ps", "--format", "{{.Names}}", quiet=True)
        return result.ok and name in result.output.split()

    def status(self, name: str) -> Optional[str]:
        """Container state as reported by docker inspect, e.g. 'running'."""
        result = self._docker("INSPECT", name, "inspect", "--format", "{{.State.Status}}", name,
                              quiet=True)
        if not result.ok:
            return None
        return result.output.strip() or None

    def health_status(self, name: str) -> Optional[str]:
        """Health check status, or None when the container has no health check."""
        result = self._docker(
            "INSPECT", name, "inspect", "--format",
            "{{if .State.Health}}{{.State.Health.Status}}{{end}}", name,
            quiet=True,
        )
        if not result.ok:
            return None
        health = result.output.strip()
        if not health or health == "<nil>":
            return None
        return health

    def container_id(self, name: str) -> Optional[str]:
        """Short container ID for the named container."""
        result = self._docker("INSPECT", name, "ps", "-a", "--format", "{{.ID}}\t{{.Names}}",
                              quiet=True)
        if not result.ok:
            return None
        for line in result.output.splitlines():
            parts = line.strip().split("\t")
            if len(parts) == 2 and parts[1] == name:
                return parts[0]
        return None

    def inventory(self) -> List[RuntimeContainer]:
        """All containers known to the runtime, running or not.

        Raises:
            RuntimeCommandFailedError: If docker cannot list containers
        """
        result = self._docker("SYNC", None, "ps", "-a", "--format",
                              "{{.Names}}\t{{.Status}}\t{{.ID}}")
        if not result.ok:
            raise RuntimeCommandFailedError(
                "Failed to list containers", result.exit_code, result.output, diagnose(result.output)
            )
        containers = []
        for line in result.output.splitlines():
            parts = line.strip().split("\t")
            if len(parts) != 3 or not parts[0]:
                continue
            containers.append(RuntimeContainer(name=parts[0], status_phrase=parts[1], id=parts[2]))
        return containers

    # Creation

    def run(self, name: str, command: str) -> CommandResult:
        """Run an assembled 'docker run' or 'docker create' command line."""
        return self.executor.execute("GENERATE", name, command,
                                     timeout=self.settings.compose_timeout)

    def compose(self, name: str, manifest_path: Path, project: str,
                project_dir: Path, no_start: bool = False) -> CommandResult:
        """Create (and optionally start) the services in a compose manifest."""
        args = shlex.split(self.settings.compose_command) + [
            "-f", str(manifest_path),
            "--project-directory", str(project_dir),
            "-p", project,
        ]
        args += ["create"] if no_start else ["up", "-d"]
        return self.executor.execute("GENERATE", name, args,
                                     timeout=self.settings.compose_timeout)

    def pull(self, image: str) -> CommandResult:
        return self._docker("PULL", image, "pull", image, timeout=self.settings.pull_timeout)

    # State transitions

    def start(self, name: str) -> CommandResult:
        return self._docker("START", name, "start", name)

    def stop(self, name: str, timeout: Optional[int] = None) -> CommandResult:
        stop_timeout = self.settings.stop_timeout if timeout is None else timeout
        # Leave the executor enough time for docker's own grace period
        return self._docker("STOP", name, "stop", f"--time={stop_timeout}", name,
                            timeout=self.settings.command_timeout + stop_timeout)

    def kill(self, name: str) -> CommandResult:
        return self._docker("STOP", name, "kill", name)

    def restart(self, name: str) -> CommandResult:
        return self._docker("RESTART", name, "restart", name,
                            timeout=self.settings.command_timeout + self.settings.stop_timeout)

    def remove(self, name: str, force: bool = False) -> CommandResult:
        args = ["rm", "-f", name] if force else ["rm", name]
        return self._docker("REMOVE", name, *args)

    # Inspection and housekeeping

    def logs(self, name: str, tail: Optional[int] = DEFAULT_LOG_TAIL, timestamps: bool = False,
             since: Optional[str] = None) -> CommandResult:
        args = ["logs"]
        if tail is not None:
            args += ["--tail", str(tail)]
        if timestamps:
            args.append("--timestamps")
        if since:
            args += ["--since", since]
        args.append(name)
        return self._docker("LOGS", name, *args)

    def stats(self, name: str) -> CommandResult:
        return self._docker("STATS", name, "stats", "--no-stream", name)

    def prune(self, volumes: bool = False) -> List[CommandResult]:
        """Prune stopped containers, dangling images and unused networks."""
        targets = ["container", "image", "network"]
        if volumes:
            targets.append("volume")
        return [
            self._docker("CLEANUP", None, target, "prune", "-f",
                         timeout=self.settings.compose_timeout)
            for target in targets
        ]
