"""Start command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import (
    fail,
    get_services,
    readiness_progress,
    report_batch,
    report_result,
    resolve_unit_names,
)

ALREADY_RUNNING = "Container '{unit}' is already running"


@click.command()
@click.argument('names', nargs=-1)
@click.option('--all', 'all_units', is_flag=True, help='Start every tracked container')
@click.option('--timeout', '-t', type=click.IntRange(min=1), help='Readiness timeout in seconds')
@click.option('--no-wait', is_flag=True, help='Do not wait for the container to become ready')
@click.pass_context
def start(ctx, names, all_units, timeout, no_wait):
    """Start containers (defaults to the last used container)

    NAMES may be container names or YAML files, which stand for every
    container they declare.
    """
    services = get_services(ctx)
    targets = resolve_unit_names(services, names, all_units)
    if not targets:
        return

    if len(targets) == 1:
        try:
            with readiness_progress(targets[0]) as progress:
                result = services.controller.start(targets[0], timeout=timeout, wait=not no_wait,
                                                   progress=progress)
        except ServiceError as e:
            fail(e)
        report_result(result, "Started", ALREADY_RUNNING)
        return

    with readiness_progress("containers") as progress:
        batch = services.controller.start_many(targets, timeout=timeout, wait=not no_wait,
                                               progress=progress)
    report_batch(batch, "Started", "start", ALREADY_RUNNING)
