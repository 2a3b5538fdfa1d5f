"""Configuration management commands for Docker Ops Manager."""

import json
from pathlib import Path

import click

from ...core.config_resolver import ConfigDocument, runtime_names, summarize, validate_unit_name
from ...services.exceptions import InvalidNameError, NoUnitsFoundError, ServiceError
from ...utils.config_manager import ConfigManager
from ..helpers import fail, get_settings


@click.group()
def config():
    """Manage Docker Ops Manager settings"""
    pass


@config.command()
@click.pass_context
def show(ctx):
    """Display the effective settings"""
    settings = get_settings(ctx)
    click.echo("Docker Ops Manager Configuration:")
    click.echo(json.dumps(settings.model_dump(mode='json'), indent=2))


@config.command(name='set')
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Store a setting in the config file"""
    settings = get_settings(ctx)
    config_manager = ConfigManager(settings.config_dir, config_file=settings.config_file)
    try:
        config_manager.set_value(key, value)
    except ServiceError as e:
        fail(e)
    click.echo(f"Set {key} = {value}")


@config.command()
@click.argument('config_file', type=click.Path(path_type=Path))
def validate(config_file):
    """Check a YAML configuration file and list the containers it declares"""
    try:
        doc = ConfigDocument.load(config_file)
        click.echo(summarize(doc))
        names = runtime_names(doc)
    except ServiceError as e:
        fail(e)

    if not names:
        fail(NoUnitsFoundError(f"No containers found in {doc.path}"))
    invalid = [name for name in names.values() if not validate_unit_name(name)]
    if invalid:
        fail(InvalidNameError(f"Invalid container names: {', '.join(invalid)}"))
    click.echo(click.style("Configuration is valid", fg='green'))
