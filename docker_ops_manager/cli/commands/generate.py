"""Generate command for Docker Ops Manager."""

import sys
from pathlib import Path

import click

from ...services.exceptions import ServiceError
from ..helpers import fail, get_services, readiness_progress, report_result


@click.command()
@click.argument('config_file', type=click.Path(path_type=Path))
@click.argument('name', required=False)
@click.option('--all', 'all_units', is_flag=True, help='Generate every container in the file')
@click.option('--force', '-f', is_flag=True, help='Replace an existing container of the same name')
@click.option('--no-start', is_flag=True, help='Create the container without starting it')
@click.option('--timeout', '-t', type=click.IntRange(min=1), help='Readiness timeout in seconds')
@click.pass_context
def generate(ctx, config_file, name, all_units, force, no_start, timeout):
    """Generate a container from a YAML configuration file"""
    services = get_services(ctx)
    done = "Created" if no_start else "Generated"

    try:
        if all_units:
            with readiness_progress("containers") as progress:
                batch = services.controller.generate_all(
                    config_file, force=force, no_start=no_start, timeout=timeout, progress=progress
                )
            for result in batch.results:
                report_result(result, done)
            for unit, error in batch.failures.items():
                click.echo(click.style(f"Failed to generate {unit}: {error}", fg='red'), err=True)
            if not batch.ok:
                sys.exit(1)
            return

        with readiness_progress(name or "container") as progress:
            result = services.controller.generate(
                config_file, name, force=force, no_start=no_start, timeout=timeout, progress=progress
            )
        report_result(result, done)
    except ServiceError as e:
        fail(e)
