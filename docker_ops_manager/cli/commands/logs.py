"""Logs command for Docker Ops Manager."""

import click

from ...core.constants import DEFAULT_LOG_TAIL
from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, resolve_unit_names


@click.command()
@click.argument('name', required=False)
@click.option('--tail', '-n', type=click.IntRange(min=0), default=DEFAULT_LOG_TAIL, show_default=True,
              help='Number of lines to show')
@click.option('--timestamps', is_flag=True, help='Show timestamps')
@click.option('--since', help='Show logs since a timestamp or relative time (e.g. 10m)')
@click.pass_context
def logs(ctx, name, tail, timestamps, since):
    """Show container logs (defaults to the last used container)"""
    services = get_services(ctx)
    name = resolve_unit_names(services, (name,) if name else ())[0]

    try:
        output = services.controller.logs(name, tail=tail, timestamps=timestamps, since=since)
    except ServiceError as e:
        fail(e)
    click.echo(output.rstrip())
