"""Wait for a unit to become ready after it is created or started."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..models.settings import ManagerSettings
from ..services.exceptions import ConfigInvalidError
from ..utils.logging_config import log_operation
from .config_resolver import ConfigDocument, readiness_override
from .constants import DEFAULT_READINESS_TIMEOUT
from .runtime import DockerRuntime

logger = logging.getLogger(__name__)

# progress(elapsed, timeout, health) -> False to stop waiting
ProgressCallback = Callable[[float, int, Optional[str]], Optional[bool]]


class ReadinessOutcome(Enum):
    """Final verdict of a readiness wait."""
    HEALTHY = "healthy"
    RUNNING_NO_HEALTHCHECK = "running_no_healthcheck"
    UNHEALTHY = "unhealthy"
    NOT_RUNNING = "not_running"


@dataclass
class ReadinessResult:
    outcome: ReadinessOutcome
    timeout: int
    elapsed: float
    last_health: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.outcome in (ReadinessOutcome.HEALTHY, ReadinessOutcome.RUNNING_NO_HEALTHCHECK)


class ReadinessProber:
    """Polls a unit's health until it is healthy or the timeout expires.

    A unit with a health check is ready only once docker reports it
    healthy. A unit without one is ready if it is still running when the
    wait ends.
    """

    def __init__(self, runtime: DockerRuntime, settings: ManagerSettings,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.runtime = runtime
        self.settings = settings
        self.clock = clock
        self.sleep = sleep

    def resolve_timeout(self, unit_name: str, cli_timeout: Optional[int] = None,
                        config_source: Optional[str] = None) -> int:
        """Pick the timeout: unit override, then caller, then settings, then the default."""
        if config_source:
            try:
                override = readiness_override(ConfigDocument.load(config_source), unit_name)
            except ConfigInvalidError as e:
                log_operation(logger, logging.DEBUG, "READINESS", unit_name,
                              f"Could not read readiness override: {e}")
                override = None
            if override:
                return override
        if cli_timeout and cli_timeout > 0:
            return cli_timeout
        if self.settings.readiness_timeout:
            return self.settings.readiness_timeout
        return DEFAULT_READINESS_TIMEOUT

    def wait_ready(self, unit_name: str, cli_timeout: Optional[int] = None,
                   config_source: Optional[str] = None,
                   progress: Optional[ProgressCallback] = None) -> ReadinessResult:
        """Wait until the unit is ready or the timeout expires.

        Args:
            unit_name: Runtime name of the unit
            cli_timeout: Timeout requested by the caller
            config_source: Config document that may carry a per-unit override
            progress: Called after every poll; returning False stops waiting

        Returns:
            ReadinessResult with the outcome and time spent
        """
        timeout = self.resolve_timeout(unit_name, cli_timeout, config_source)
        log_operation(logger, logging.INFO, "READINESS", unit_name,
                      f"Waiting up to {timeout}s for container to become ready")

        started = self.clock()
        health: Optional[str] = None
        health_seen = False
        while True:
            current = self.runtime.health_status(unit_name)
            if current is not None:
                health = current
                health_seen = True
                if current == "healthy":
                    return self._finish(unit_name, ReadinessOutcome.HEALTHY, timeout,
                                        self.clock() - started, health)

            elapsed = self.clock() - started
            if progress is not None and progress(elapsed, timeout, health) is False:
                log_operation(logger, logging.DEBUG, "READINESS", unit_name, "Wait cancelled")
                break
            if elapsed >= timeout:
                break
            self.sleep(min(self.settings.poll_interval, max(timeout - elapsed, 0)))

        elapsed = self.clock() - started
        if not self.runtime.is_running(unit_name):
            outcome = ReadinessOutcome.NOT_RUNNING
        elif health_seen:
            outcome = ReadinessOutcome.UNHEALTHY
        else:
            outcome = ReadinessOutcome.RUNNING_NO_HEALTHCHECK
        return self._finish(unit_name, outcome, timeout, elapsed, health)

    def _finish(self, unit_name: str, outcome: ReadinessOutcome, timeout: int,
                elapsed: float, health: Optional[str]) -> ReadinessResult:
        result = ReadinessResult(outcome=outcome, timeout=timeout, elapsed=elapsed, last_health=health)
        if result.ready:
            log_operation(logger, logging.INFO, "READINESS", unit_name,
                          f"Container ready ({outcome.value}) after {elapsed:.1f}s")
        else:
            log_operation(logger, logging.WARNING, "READINESS", unit_name,
                          f"Container not ready ({outcome.value}) after {elapsed:.1f}s")
        return result
