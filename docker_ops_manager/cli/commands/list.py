"""List command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, format_status, get_services, print_table


@click.command(name='list')
@click.option('--all', 'show_all', is_flag=True, help='Show all docker containers, not just tracked ones')
@click.pass_context
def list_units(ctx, show_all):
    """List tracked containers"""
    services = get_services(ctx)

    try:
        records = services.store.list_units()
        if show_all:
            tracked = {record.name for record in records}
            inventory = services.runtime.inventory()
            if not inventory:
                click.echo("No containers found")
                return
            rows = [
                [container.name, container.status_phrase, container.id,
                 "yes" if container.name in tracked else "no"]
                for container in inventory
            ]
            print_table(["NAME", "STATUS", "ID", "TRACKED"], rows)
            return

        if not records:
            click.echo("No tracked containers")
            return
        rows = [
            [record.name, format_status(record.status), record.last_operation,
             record.last_operation_time, record.config_source or ""]
            for record in records
        ]
        print_table(["NAME", "STATUS", "LAST OPERATION", "TIME", "CONFIG"], rows)
    except ServiceError as e:
        fail(e)
