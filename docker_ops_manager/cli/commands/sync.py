"""Sync command for Docker Ops Manager."""

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, format_status, get_services, print_table


@click.command()
@click.pass_context
def sync(ctx):
    """Synchronize tracked state with docker"""
    services = get_services(ctx)

    try:
        report = services.reconciler.sync()
    except ServiceError as e:
        fail(e)

    if not report.statuses:
        click.echo("No tracked containers to synchronize")
        return
    rows = [
        [name, format_status(status), report.matched.get(name, "")]
        for name, status in report.statuses.items()
    ]
    print_table(["NAME", "STATUS", "DOCKER NAME"], rows)
    if report.missing:
        click.echo(f"{len(report.missing)} container(s) no longer exist: {', '.join(report.missing)}")
