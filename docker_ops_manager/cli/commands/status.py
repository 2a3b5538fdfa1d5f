"""Status command for Docker Ops Manager."""

import click

from ...models.unit import UnitStatus
from ...services.exceptions import ServiceError
from ..helpers import fail, format_status, get_services, resolve_unit_names


@click.command()
@click.argument('name', required=False)
@click.option('--stats', is_flag=True, help='Include a resource usage snapshot')
@click.pass_context
def status(ctx, name, stats):
    """Show the status of a container (defaults to the last used container)"""
    services = get_services(ctx)
    name = resolve_unit_names(services, (name,) if name else ())[0]

    try:
        record = services.store.get_unit(name)
        exists = services.runtime.exists(name)
        runtime_status = services.runtime.status(name) if exists else None
        health = services.runtime.health_status(name) if exists else None
        runtime_id = services.runtime.container_id(name) if exists else None

        click.echo(f"Container: {name}")
        live = UnitStatus.parse(runtime_status) if exists else UnitStatus.REMOVED
        click.echo(f"Status: {format_status(live)}")
        if health:
            click.echo(f"Health: {health}")
        if runtime_id:
            click.echo(f"Container ID: {runtime_id}")

        if record:
            click.echo(f"Tracked status: {format_status(record.status)}")
            click.echo(f"Last operation: {record.last_operation} at {record.last_operation_time}")
            if record.config_source:
                click.echo(f"Config source: {record.config_source}")
        else:
            click.echo("Not tracked by docker-ops")

        if stats and exists:
            click.echo("")
            click.echo(services.controller.stats(name).rstrip())
    except ServiceError as e:
        fail(e)
