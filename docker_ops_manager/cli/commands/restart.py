"""Restart command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, report_result, resolve_unit_names


@click.command()
@click.argument('names', nargs=-1)
@click.pass_context
def restart(ctx, names):
    """Restart containers (defaults to the last used container)"""
    services = get_services(ctx)

    for name in resolve_unit_names(services, names):
        try:
            result = services.controller.restart(name)
        except ServiceError as e:
            fail(e)
        report_result(result, "Restarted")
