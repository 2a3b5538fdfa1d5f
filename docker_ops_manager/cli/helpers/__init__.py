"""CLI Helper Functions for Docker Ops Manager.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Settings loading and logging setup for the command group
- Wiring of the runtime, state store, prober, reconciler and controller
- Unit name resolution from config files, tracked units or the last operated unit
- Consistent error reporting with diagnostic hints
- Table formatting and the readiness spinner
"""

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, NoReturn, Optional

import click
from rich.console import Console
from tabulate import tabulate

from docker_ops_manager.core.command_executor import CommandExecutor
from docker_ops_manager.core.config_resolver import ConfigDocument, runtime_names
from docker_ops_manager.core.constants import CONFIG_FILE_SUFFIXES
from docker_ops_manager.core.lifecycle import BatchResult, LifecycleController, OperationResult
from docker_ops_manager.core.readiness import ProgressCallback, ReadinessProber, ReadinessResult
from docker_ops_manager.core.reconciler import ReconciliationEngine
from docker_ops_manager.core.runtime import DockerRuntime
from docker_ops_manager.core.state_store import StateStore
from docker_ops_manager.models.settings import ManagerSettings
from docker_ops_manager.models.unit import UnitStatus
from docker_ops_manager.services.exceptions import NoUnitsFoundError, ServiceError
from docker_ops_manager.utils.config_manager import ConfigManager
from docker_ops_manager.utils.logging_config import setup_logging


@dataclass
class Services:
    """Components wired together for one CLI invocation."""
    settings: ManagerSettings
    runtime: DockerRuntime
    store: StateStore
    prober: ReadinessProber
    reconciler: ReconciliationEngine
    controller: LifecycleController


def fail(error: Exception) -> NoReturn:
    """Print an error with any diagnostic hint and exit with status 1."""
    click.echo(click.style(f"Error: {error}", fg='red'), err=True)
    hint = getattr(error, 'hint', None)
    if hint is not None:
        click.echo(click.style(f"Hint: {hint.message}", fg='yellow'), err=True)
        for suggestion in hint.suggestions:
            click.echo(f"  - {suggestion}", err=True)
    sys.exit(1)


def load_settings(config_dir: Optional[Path] = None, state_file: Optional[Path] = None,
                  log_level: Optional[str] = None) -> ManagerSettings:
    """Build settings from all configuration layers and set up logging.

    Note:
        Exits with an error message if the configuration is invalid.
    """
    config_manager = ConfigManager(config_dir, environ=os.environ)
    try:
        config_manager.init_config_file()
        settings = config_manager.build_settings({'state_file': state_file, 'log_level': log_level})
        setup_logging(settings.log_dir, settings.log_level, settings.log_rotation_days)
    except (ServiceError, OSError) as e:
        fail(e)
    return settings


def get_settings(ctx: click.Context) -> ManagerSettings:
    """Settings stored on the context by the command group, loading them if absent."""
    ctx.ensure_object(dict)
    if 'settings' not in ctx.obj:
        ctx.obj['settings'] = load_settings()
    return ctx.obj['settings']


def get_services(ctx: click.Context) -> Services:
    """Wire up the core components for a command."""
    settings = get_settings(ctx)
    executor = CommandExecutor(settings.command_timeout)
    runtime = DockerRuntime(executor, settings)
    store = StateStore(settings)
    prober = ReadinessProber(runtime, settings)
    reconciler = ReconciliationEngine(runtime, store)
    controller = LifecycleController(runtime, store, prober, reconciler, settings)
    return Services(settings, runtime, store, prober, reconciler, controller)


def _expand_config_file(argument: str) -> List[str]:
    path = Path(argument)
    if path.suffix.lower() not in CONFIG_FILE_SUFFIXES or not path.is_file():
        return [argument]
    try:
        names = list(runtime_names(ConfigDocument.load(path)).values())
    except ServiceError as e:
        fail(e)
    if not names:
        fail(NoUnitsFoundError(f"No containers found in {path}"))
    click.echo(f"Found {len(names)} container(s) in {path}: {', '.join(names)}")
    return names


def resolve_unit_names(services: Services, names: tuple, all_units: bool = False) -> List[str]:
    """Names given on the command line, or the last operated unit.

    A ``.yml``/``.yaml`` argument naming an existing file stands for every
    container declared in it. With ``all_units`` every tracked unit is
    returned, which may be an empty list.

    Note:
        Exits with error if no name is given and no unit was operated on yet.
    """
    if all_units:
        try:
            targets = [record.name for record in services.store.list_units()]
        except ServiceError as e:
            fail(e)
        if not targets:
            click.echo("No managed containers found")
        return targets
    if names:
        targets = []
        for name in names:
            for target in _expand_config_file(name):
                if target not in targets:
                    targets.append(target)
        return targets
    try:
        last_unit = services.store.get('last_unit')
    except ServiceError as e:
        fail(e)
    if not last_unit:
        click.echo("Error: No container specified and no previous container found", err=True)
        sys.exit(1)
    click.echo(f"Using last container: {last_unit}")
    return [str(last_unit)]


STATUS_COLORS = {
    UnitStatus.RUNNING: 'green',
    UnitStatus.CREATED: 'cyan',
    UnitStatus.STOPPED: 'yellow',
    UnitStatus.EXITED: 'yellow',
    UnitStatus.REMOVED: 'red',
    UnitStatus.UNKNOWN: 'white',
}


def format_status(status: UnitStatus) -> str:
    return click.style(status.value, fg=STATUS_COLORS.get(status, 'white'))


def print_table(headers: list[str], rows: list[list[Any]],
                tablefmt: str = "simple") -> None:
    """Print a table with project-wide defaults.

    Args:
        headers: Table headers
        rows: Table rows
        tablefmt: Table format (default: "simple")
    """
    table_str = tabulate(rows, headers=headers, tablefmt=tablefmt)
    click.echo(table_str)


@contextmanager
def readiness_progress(label: str = "container") -> Iterator[ProgressCallback]:
    """Show a spinner while waiting and yield the prober's progress callback."""
    console = Console(stderr=True)
    with console.status(f"Working on {label}...") as status:
        def progress(elapsed: float, timeout: int, health: Optional[str]) -> bool:
            detail = f", health: {health}" if health else ""
            status.update(f"Waiting for {label} to become ready ({int(elapsed)}s/{timeout}s{detail})")
            return True

        yield progress


def report_readiness(unit: str, readiness: Optional[ReadinessResult]) -> None:
    """Describe the outcome of a readiness wait."""
    if readiness is None:
        return
    if readiness.ready:
        click.echo(f"Container '{unit}' is ready ({readiness.outcome.value}, {readiness.elapsed:.1f}s)")
    else:
        click.echo(click.style(
            f"Warning: Container '{unit}' is not ready after {readiness.timeout}s "
            f"({readiness.outcome.value})", fg='yellow'), err=True)


def report_result(result: OperationResult, done: str, unchanged: Optional[str] = None) -> None:
    """Print the outcome of a lifecycle operation.

    Args:
        result: Operation outcome
        done: Verb shown for a unit that changed, e.g. "Started"
        unchanged: Message for a unit already in the target state, formatted with ``unit``
    """
    if result.changed:
        click.echo(click.style(f"{done}: {result.unit}", fg='green'))
    elif unchanged:
        click.echo(unchanged.format(unit=result.unit))
    report_readiness(result.unit, result.readiness)


def report_batch(batch: BatchResult, done: str, verb: str, unchanged: Optional[str] = None) -> None:
    """Print every outcome of a batch operation, exiting with status 1 on any failure."""
    for result in batch.results:
        report_result(result, done, unchanged)
    for name, error in batch.failures.items():
        click.echo(click.style(f"Failed to {verb} {name}: {error}", fg='red'), err=True)
        hint = getattr(error, 'hint', None)
        if hint is not None:
            click.echo(click.style(f"Hint: {hint.message}", fg='yellow'), err=True)
    if not batch.ok:
        sys.exit(1)


# Re-export commonly used functions for convenience
__all__ = [
    'Services',
    'fail',
    'load_settings',
    'get_settings',
    'get_services',
    'resolve_unit_names',
    'format_status',
    'print_table',
    'readiness_progress',
    'report_readiness',
    'report_result',
    'report_batch',
]
