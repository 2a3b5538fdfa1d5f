"""Reinstall command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, readiness_progress, report_result, resolve_unit_names


@click.command()
@click.argument('name', required=False)
@click.option('--timeout', '-t', type=click.IntRange(min=1), help='Readiness timeout in seconds')
@click.pass_context
def reinstall(ctx, name, timeout):
    """Recreate a container from the YAML file it was generated from"""
    services = get_services(ctx)
    name = resolve_unit_names(services, (name,) if name else ())[0]

    try:
        with readiness_progress(name) as progress:
            result = services.controller.reinstall(name, timeout=timeout, progress=progress)
    except ServiceError as e:
        fail(e)
    report_result(result, "Reinstalled")
