"""Lifecycle state machine for managed units.

A unit moves through absent -> created -> running <-> stopped -> absent.
``exited`` is the runtime's view of a unit that stopped on its own.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

import yaml

from ..models.settings import ManagerSettings
from ..models.unit import Operation, UnitStatus
from ..services.exceptions import (
    AlreadyExistsError,
    ConfigInvalidError,
    InvalidNameError,
    NoUnitsFoundError,
    RemovalFailedError,
    RuntimeCommandFailedError,
    ServiceError,
    UnitNotFoundError,
    UnsupportedDialectError,
)
from ..utils.logging_config import log_operation
from .command_executor import CommandResult
from .config_resolver import (
    ConfigDocument,
    Dialect,
    build_compose_manifest,
    classify,
    extract_run_command,
    list_units,
    project_name,
    resolve_runtime_name,
    runtime_names,
    unit_image,
    validate_unit_name,
)
from .constants import DEFAULT_LOG_TAIL, MAX_REMOVAL_ATTEMPTS, REMOVAL_BACKOFF
from .diagnostics import diagnose
from .readiness import ProgressCallback, ReadinessOutcome, ReadinessProber, ReadinessResult
from .reconciler import ReconciliationEngine
from .runtime import DockerRuntime
from .state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of one lifecycle operation."""
    unit: str
    operation: Operation
    status: UnitStatus
    changed: bool = True  # False when the unit was already in the target state
    readiness: Optional[ReadinessResult] = None
    runtime_id: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.readiness is None or self.readiness.ready


@dataclass
class BatchResult:
    """Outcome of an operation applied to several units."""
    results: List[OperationResult] = field(default_factory=list)
    failures: Dict[str, ServiceError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def command_failed(message: str, result: CommandResult) -> RuntimeCommandFailedError:
    """Build the error for a failed docker command, with a hint when one applies."""
    output = result.output.strip()
    detail = f"{message} (exit code {result.exit_code})"
    if output:
        detail = f"{detail}: {output}"
    return RuntimeCommandFailedError(detail, result.exit_code, output, diagnose(output))


class LifecycleController:
    """Generates, starts, stops, restarts and removes units.

    The only component, besides the reconciler, that changes the state store.
    """

    def __init__(self, runtime: DockerRuntime, store: StateStore, prober: ReadinessProber,
                 reconciler: ReconciliationEngine, settings: ManagerSettings,
                 sleep: Callable[[float], None] = time.sleep):
        self.runtime = runtime
        self.store = store
        self.prober = prober
        self.reconciler = reconciler
        self.settings = settings
        self.sleep = sleep

    # Generation

    def generate(self, config_source: Union[str, Path], declared_name: Optional[str] = None,
                 force: bool = False, no_start: bool = False, timeout: Optional[int] = None,
                 progress: Optional[ProgressCallback] = None) -> OperationResult:
        """Create a unit from a config document.

        Args:
            config_source: Path to the config document
            declared_name: Unit to generate; the first declared unit when empty
            force: Replace an existing container of the same name
            no_start: Create the container without starting it
            timeout: Readiness timeout requested by the caller
            progress: Readiness progress callback

        Returns:
            OperationResult; a unit that never became ready is reported through
            its readiness field rather than raised

        Raises:
            ConfigInvalidError, NoUnitsFoundError, InvalidNameError,
            UnitNotFoundError, AlreadyExistsError, RemovalFailedError,
            RuntimeCommandFailedError
        """
        doc = ConfigDocument.load(config_source)
        dialect = classify(doc)
        units = list_units(doc, dialect)
        if not units:
            raise NoUnitsFoundError(f"No containers found in {doc.path}")

        name = declared_name or units[0]
        if not validate_unit_name(name):
            raise InvalidNameError(
                f"Invalid container name '{name}': must start with a letter or underscore "
                "and contain only letters, digits, '.', '_' or '-'"
            )
        if name not in units:
            raise UnitNotFoundError(
                f"Container '{name}' is not defined in {doc.path}. Available: {', '.join(units)}"
            )

        runtime_name = resolve_runtime_name(doc, name, dialect)
        source = str(doc.path)
        log_operation(logger, logging.INFO, "GENERATE", runtime_name,
                      f"Generating container from {source} ({dialect.value})")

        if self.runtime.exists(runtime_name):
            if not force:
                raise AlreadyExistsError(
                    f"Container '{runtime_name}' already exists. Use --force to regenerate it"
                )
            self._force_remove(runtime_name)

        self._create(doc, dialect, name, runtime_name, no_start)

        readiness = None
        if no_start:
            status = UnitStatus.CREATED
        else:
            readiness = self.prober.wait_ready(runtime_name, cli_timeout=timeout,
                                               config_source=source, progress=progress)
            if readiness.outcome is ReadinessOutcome.NOT_RUNNING:
                status = UnitStatus.parse(self.runtime.status(runtime_name))
            else:
                status = UnitStatus.RUNNING

        runtime_id = self.runtime.container_id(runtime_name)
        self.store.record_operation(runtime_name, Operation.CREATE, config_source=source,
                                    runtime_id=runtime_id, status=status)
        self.store.mark_last(runtime_name, Operation.CREATE, config_source=source)
        log_operation(logger, logging.INFO, "GENERATE", runtime_name,
                      f"Container generated with status {status.value}")
        return OperationResult(unit=runtime_name, operation=Operation.CREATE, status=status,
                               readiness=readiness, runtime_id=runtime_id)

    def generate_all(self, config_source: Union[str, Path], force: bool = False,
                     no_start: bool = False, timeout: Optional[int] = None,
                     progress: Optional[ProgressCallback] = None) -> BatchResult:
        """Generate every unit declared in a config document."""
        doc = ConfigDocument.load(config_source)
        units = list_units(doc, classify(doc))
        if not units:
            raise NoUnitsFoundError(f"No containers found in {doc.path}")

        batch = BatchResult()
        for unit in units:
            try:
                batch.results.append(self.generate(config_source, unit, force=force, no_start=no_start,
                                                   timeout=timeout, progress=progress))
            except ServiceError as e:
                log_operation(logger, logging.ERROR, "GENERATE", unit, str(e))
                batch.failures[unit] = e
        return batch

    def reinstall(self, name: str, timeout: Optional[int] = None,
                  progress: Optional[ProgressCallback] = None) -> OperationResult:
        """Stop, remove and regenerate a unit from the config it was generated from.

        Raises:
            UnitNotFoundError: If the unit does not exist or is no longer
                declared in its config document
            ConfigInvalidError: If no config source is recorded or it cannot be read
        """
        self._require_exists(name)
        record = self.store.get_unit(name)
        if record is None or not record.config_source:
            raise ConfigInvalidError(
                f"No config source recorded for container '{name}'. Use generate instead"
            )

        doc = ConfigDocument.load(record.config_source)
        declared = next((unit for unit, runtime_name in runtime_names(doc).items()
                         if runtime_name == name), None)
        if declared is None:
            raise UnitNotFoundError(f"Container '{name}' is no longer defined in {doc.path}")

        log_operation(logger, logging.INFO, "REINSTALL", name,
                      f"Reinstalling container from {doc.path}")
        if self.runtime.is_running(name):
            self.stop(name)
        return self.generate(doc.path, declared, force=True, timeout=timeout, progress=progress)

    def _force_remove(self, name: str) -> None:
        for attempt in range(1, MAX_REMOVAL_ATTEMPTS + 1):
            result = self.runtime.remove(name, force=True)
            if not self.runtime.exists(name):
                log_operation(logger, logging.INFO, "GENERATE", name, "Removed existing container")
                return
            log_operation(logger, logging.WARNING, "GENERATE", name,
                          f"Removal attempt {attempt}/{MAX_REMOVAL_ATTEMPTS} failed: "
                          f"{result.output.strip() or 'container still exists'}")
            if attempt < MAX_REMOVAL_ATTEMPTS:
                self.sleep(REMOVAL_BACKOFF)
        raise RemovalFailedError(
            f"Failed to remove existing container '{name}' after {MAX_REMOVAL_ATTEMPTS} attempts",
            attempts=MAX_REMOVAL_ATTEMPTS,
        )

    def _create(self, doc: ConfigDocument, dialect: Dialect, name: str,
                runtime_name: str, no_start: bool) -> None:
        if dialect in (Dialect.COMPOSE, Dialect.STACK):
            result = self._create_with_compose(doc, name, runtime_name, no_start)
        elif dialect is Dialect.CUSTOM:
            command = extract_run_command(doc, name, dialect, no_start=no_start)
            image = unit_image(doc, name, dialect)
            pull = self.runtime.pull(image)
            if not pull.ok:
                log_operation(logger, logging.WARNING, "GENERATE", runtime_name,
                              f"Could not pull image {image}, using local copy if present")
            result = self.runtime.run(runtime_name, command)
        else:
            raise UnsupportedDialectError(f"Unsupported config dialect: {dialect}")

        if not result.ok:
            raise command_failed(f"Failed to generate container '{runtime_name}'", result)

    def _create_with_compose(self, doc: ConfigDocument, name: str, runtime_name: str,
                             no_start: bool) -> CommandResult:
        project = project_name(doc, name, self.settings.project_name_pattern)
        manifest = build_compose_manifest(doc, name, project)
        fd, manifest_path = tempfile.mkstemp(prefix="docker-ops-", suffix=".yml")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(manifest, f, sort_keys=False)
            return self.runtime.compose(runtime_name, Path(manifest_path), project,
                                        doc.path.parent, no_start=no_start)
        finally:
            Path(manifest_path).unlink(missing_ok=True)

    # State transitions

    def _require_exists(self, name: str) -> None:
        if not self.runtime.exists(name):
            raise UnitNotFoundError(f"Container '{name}' does not exist")

    def start(self, name: str, timeout: Optional[int] = None, wait: bool = True,
              progress: Optional[ProgressCallback] = None) -> OperationResult:
        """Start a unit and wait for it to become ready.

        Starting a running unit is a no-op.
        """
        self._require_exists(name)
        if self.runtime.is_running(name):
            log_operation(logger, logging.INFO, "START", name, "Container is already running")
            return OperationResult(unit=name, operation=Operation.START,
                                   status=UnitStatus.RUNNING, changed=False)

        result = self.runtime.start(name)
        if not result.ok:
            raise command_failed(f"Failed to start container '{name}'", result)

        record = self.store.get_unit(name)
        runtime_id = self.runtime.container_id(name)
        self.store.record_operation(name, Operation.START, runtime_id=runtime_id,
                                    status=UnitStatus.RUNNING)
        self.store.mark_last(name, Operation.START)
        log_operation(logger, logging.INFO, "START", name, "Container started")

        readiness = None
        if wait:
            readiness = self.prober.wait_ready(
                name, cli_timeout=timeout,
                config_source=record.config_source if record else None,
                progress=progress,
            )
        return OperationResult(unit=name, operation=Operation.START, status=UnitStatus.RUNNING,
                               readiness=readiness, runtime_id=runtime_id)

    def stop(self, name: str, timeout: Optional[int] = None, force: bool = False) -> OperationResult:
        """Stop a unit, escalating to kill when a graceful stop fails.

        Stopping a unit that is not running is a no-op.
        """
        self._require_exists(name)
        if not self.runtime.is_running(name):
            log_operation(logger, logging.INFO, "STOP", name, "Container is not running")
            return OperationResult(unit=name, operation=Operation.STOP,
                                   status=UnitStatus.STOPPED, changed=False)

        operation = Operation.STOP
        if force:
            operation = Operation.FORCE_STOP
            result = self.runtime.kill(name)
        else:
            result = self.runtime.stop(name, timeout)
            if not result.ok:
                log_operation(logger, logging.WARNING, "STOP", name,
                              "Graceful stop failed, killing container")
                operation = Operation.FORCE_STOP
                result = self.runtime.kill(name)
        if not result.ok:
            raise command_failed(f"Failed to stop container '{name}'", result)

        self.store.record_operation(name, operation, status=UnitStatus.STOPPED)
        self.store.mark_last(name, operation)
        log_operation(logger, logging.INFO, "STOP", name, "Container stopped")
        return OperationResult(unit=name, operation=operation, status=UnitStatus.STOPPED)

    def restart(self, name: str) -> OperationResult:
        """Restart a unit."""
        self._require_exists(name)
        result = self.runtime.restart(name)
        if not result.ok:
            raise command_failed(f"Failed to restart container '{name}'", result)

        runtime_id = self.runtime.container_id(name)
        self.store.record_operation(name, Operation.RESTART, runtime_id=runtime_id,
                                    status=UnitStatus.RUNNING)
        self.store.mark_last(name, Operation.RESTART)
        log_operation(logger, logging.INFO, "RESTART", name, "Container restarted")
        return OperationResult(unit=name, operation=Operation.RESTART, status=UnitStatus.RUNNING,
                               runtime_id=runtime_id)

    def remove(self, name: str, force: bool = False) -> OperationResult:
        """Remove a unit and its record.

        Removing a unit that does not exist succeeds and drops any stale record.
        """
        if not self.runtime.exists(name):
            if self.store.remove(name):
                log_operation(logger, logging.INFO, "REMOVE", name,
                              "Container already gone, removed stale record")
            else:
                log_operation(logger, logging.INFO, "REMOVE", name, "Container does not exist")
            return OperationResult(unit=name, operation=Operation.REMOVE,
                                   status=UnitStatus.REMOVED, changed=False)

        if self.runtime.is_running(name):
            try:
                self.stop(name)
            except RuntimeCommandFailedError as e:
                if not force:
                    raise
                log_operation(logger, logging.WARNING, "REMOVE", name,
                              f"Could not stop container, removing it anyway: {e}")
        result = self.runtime.remove(name, force=force)
        if not result.ok:
            raise command_failed(f"Failed to remove container '{name}'", result)

        self.store.remove(name)
        self.store.set("last_operation", Operation.REMOVE.value)
        log_operation(logger, logging.INFO, "REMOVE", name, "Container removed")
        return OperationResult(unit=name, operation=Operation.REMOVE, status=UnitStatus.REMOVED)

    # Batch operations

    def _batch(self, names: Iterable[str], operation: str,
               action: Callable[[str], OperationResult]) -> BatchResult:
        batch = BatchResult()
        for name in names:
            try:
                batch.results.append(action(name))
            except ServiceError as e:
                log_operation(logger, logging.ERROR, operation, name, str(e))
                batch.failures[name] = e
        return batch

    def start_many(self, names: Iterable[str], timeout: Optional[int] = None, wait: bool = True,
                   progress: Optional[ProgressCallback] = None) -> BatchResult:
        return self._batch(names, "START", lambda name: self.start(name, timeout=timeout, wait=wait,
                                                                   progress=progress))

    def stop_many(self, names: Iterable[str], timeout: Optional[int] = None,
                  force: bool = False) -> BatchResult:
        return self._batch(names, "STOP", lambda name: self.stop(name, timeout=timeout, force=force))

    def remove_many(self, names: Iterable[str], force: bool = False) -> BatchResult:
        return self._batch(names, "REMOVE", lambda name: self.remove(name, force=force))

    def cleanup(self, names: Iterable[str], force: bool = False) -> BatchResult:
        """Remove several units, then drop records of anything else that vanished."""
        batch = self.remove_many(names, force=force)
        self.reconciler.force_sync_after_cleanup()
        return batch

    def prune(self, volumes: bool = False) -> List[CommandResult]:
        """Prune unused docker resources, then drop records of vanished units.

        Raises:
            RuntimeCommandFailedError: If any prune command fails
        """
        results = self.runtime.prune(volumes=volumes)
        self.reconciler.force_sync_after_cleanup()
        for result in results:
            if not result.ok:
                raise command_failed("Failed to prune docker resources", result)
        log_operation(logger, logging.INFO, "CLEANUP", "", "Pruned unused docker resources")
        return results

    # Inspection

    def logs(self, name: str, tail: Optional[int] = DEFAULT_LOG_TAIL, timestamps: bool = False,
             since: Optional[str] = None) -> str:
        self._require_exists(name)
        result = self.runtime.logs(name, tail=tail, timestamps=timestamps, since=since)
        if not result.ok:
            raise command_failed(f"Failed to read logs of '{name}'", result)
        return result.output

    def stats(self, name: str) -> str:
        self._require_exists(name)
        result = self.runtime.stats(name)
        if not result.ok:
            raise command_failed(f"Failed to read stats of '{name}'", result)
        return result.output
