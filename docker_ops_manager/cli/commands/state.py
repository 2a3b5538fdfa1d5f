"""State management commands for Docker Ops Manager."""

from pathlib import Path

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services


@click.group()
def state():
    """Inspect and maintain the state file"""
    pass


@state.command()
@click.pass_context
def show(ctx):
    """Display a summary of the tracked state"""
    services = get_services(ctx)
    try:
        click.echo(services.store.summary())
    except ServiceError as e:
        fail(e)


@state.command()
@click.pass_context
def backup(ctx):
    """Back up the state file"""
    services = get_services(ctx)
    try:
        backup_path = services.store.backup()
    except ServiceError as e:
        fail(e)
    click.echo(f"State backed up to: {backup_path}")


@state.command()
@click.argument('backup_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def restore(ctx, backup_file):
    """Restore the state file from a backup"""
    services = get_services(ctx)
    try:
        services.store.restore(backup_file)
    except ServiceError as e:
        fail(e)
    click.echo(f"State restored from: {backup_file}")


@state.command()
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def clear(ctx, yes):
    """Forget all tracked containers"""
    if not yes and not click.confirm("Clear all tracked state?"):
        click.echo("Aborted")
        return
    services = get_services(ctx)
    try:
        services.store.clear()
    except ServiceError as e:
        fail(e)
    click.echo("State cleared")
