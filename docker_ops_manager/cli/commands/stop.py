"""Stop command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, report_batch, report_result, resolve_unit_names

NOT_RUNNING = "Container '{unit}' is not running"


@click.command()
@click.argument('names', nargs=-1)
@click.option('--all', 'all_units', is_flag=True, help='Stop every tracked container')
@click.option('--force', '-f', is_flag=True, help='Kill the container instead of stopping it gracefully')
@click.option('--timeout', '-t', type=click.IntRange(min=0), help='Seconds to wait before killing')
@click.pass_context
def stop(ctx, names, all_units, force, timeout):
    """Stop containers (defaults to the last used container)

    NAMES may be container names or YAML files, which stand for every
    container they declare.
    """
    services = get_services(ctx)
    targets = resolve_unit_names(services, names, all_units)
    if not targets:
        return

    if len(targets) == 1:
        try:
            result = services.controller.stop(targets[0], timeout=timeout, force=force)
        except ServiceError as e:
            fail(e)
        report_result(result, "Stopped", NOT_RUNNING)
        return

    batch = services.controller.stop_many(targets, timeout=timeout, force=force)
    report_batch(batch, "Stopped", "stop", NOT_RUNNING)
