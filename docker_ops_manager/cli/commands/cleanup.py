"""Cleanup command for Docker Ops Manager."""

import sys

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, resolve_unit_names


@click.command()
@click.argument('names', nargs=-1)
@click.option('--all', 'all_units', is_flag=True, help='Remove every tracked container')
@click.option('--force', '-f', is_flag=True, help='Force removal of running containers')
@click.option('--prune', is_flag=True, help='Also prune unused containers, images and networks')
@click.option('--volumes', is_flag=True, help='Also prune unused volumes (with --prune)')
@click.pass_context
def cleanup(ctx, names, all_units, force, prune, volumes):
    """Remove containers and drop state for anything that no longer exists"""
    services = get_services(ctx)

    try:
        if all_units:
            targets = [record.name for record in services.store.list_units()]
            if not targets:
                click.echo("No tracked containers to clean up")
        elif names or not prune:
            targets = resolve_unit_names(services, names)
        else:
            targets = []

        failed = False
        if targets:
            batch = services.controller.cleanup(targets, force=force)
            for result in batch.results:
                click.echo(f"Removed container: {result.unit}" if result.changed
                           else f"Container '{result.unit}' already gone")
            for name, error in batch.failures.items():
                click.echo(click.style(f"Failed to remove {name}: {error}", fg='red'), err=True)
            failed = not batch.ok

        if prune:
            click.echo("Pruning unused docker resources...")
            services.controller.prune(volumes=volumes)
            click.echo("Prune complete")
    except ServiceError as e:
        fail(e)

    if failed:
        sys.exit(1)
