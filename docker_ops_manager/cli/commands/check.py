"""Check command for Docker Ops Manager."""

import click

from ...services.docker_service import DockerService
from ...services.exceptions import DockerServiceError
from ..helpers import fail, get_settings


@click.command()
@click.pass_context
def check(ctx):
    """Check that Docker is available and show where state is kept"""
    settings = get_settings(ctx)

    try:
        docker_service = DockerService()
        version = docker_service.version()
        container_count = docker_service.container_count()
    except DockerServiceError as e:
        fail(e)

    click.echo(click.style("Docker daemon is running", fg='green'))
    click.echo(f"Docker version: {version.get('Version', 'unknown')} (API {version.get('ApiVersion', 'unknown')})")
    click.echo(f"Containers: {container_count}")
    click.echo(f"State file: {settings.state_file}")
    click.echo(f"Log directory: {settings.log_dir}")
