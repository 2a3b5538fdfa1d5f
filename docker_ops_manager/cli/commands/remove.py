"""Remove command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, report_batch, report_result, resolve_unit_names

NOTHING_TO_REMOVE = "Container '{unit}' does not exist, nothing to remove"


@click.command()
@click.argument('names', nargs=-1)
@click.option('--force', '-f', is_flag=True, help='Force removal of running containers')
@click.pass_context
def remove(ctx, names, force):
    """Remove containers and their tracked state"""
    services = get_services(ctx)
    targets = resolve_unit_names(services, names)

    if len(targets) == 1:
        try:
            result = services.controller.remove(targets[0], force=force)
        except ServiceError as e:
            fail(e)
        report_result(result, "Removed", NOTHING_TO_REMOVE)
        return

    batch = services.controller.remove_many(targets, force=force)
    report_batch(batch, "Removed", "remove", NOTHING_TO_REMOVE)
