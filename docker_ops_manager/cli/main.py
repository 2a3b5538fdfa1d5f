"""Main CLI entry point for Docker Ops Manager."""

from pathlib import Path

import click

from ..core.constants import LOG_LEVELS
from .commands.check import check
from .commands.cleanup import cleanup
from .commands.config import config
from .commands.generate import generate
from .commands.list import list_units
from .commands.logs import logs
from .commands.reinstall import reinstall
from .commands.remove import remove
from .commands.restart import restart
from .commands.start import start
from .commands.state import state
from .commands.status import status
from .commands.stop import stop
from .commands.sync import sync
from .helpers import load_settings


@click.group()
@click.option('--config-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Configuration directory (default: ~/.config/docker-ops-manager)')
@click.option('--state-file', type=click.Path(dir_okay=False, path_type=Path),
              help='State file to use instead of the configured one')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              help='Log level for this invocation')
@click.pass_context
def cli(ctx, config_dir, state_file, log_level):
    """Docker Ops Manager - Manage Docker containers from YAML configuration"""
    ctx.ensure_object(dict)
    ctx.obj['settings'] = load_settings(config_dir, state_file, log_level)


# Register commands
cli.add_command(generate)
cli.add_command(start)
cli.add_command(stop)
cli.add_command(restart)
cli.add_command(remove)
cli.add_command(reinstall)
cli.add_command(cleanup)
cli.add_command(status)
cli.add_command(list_units)
cli.add_command(logs)
cli.add_command(sync)
cli.add_command(state)
cli.add_command(config)
cli.add_command(check)


if __name__ == '__main__':
    cli()
