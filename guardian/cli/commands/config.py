"""Config command - manage repository configuration."""

import click
from guardian.core.config import Config
from guardian.core.repository import Repository
from guardian.cli.common import guardian_errors
from guardian.cli.output import success, error, info


def split_key(key):
    """Split 'section.option'; bare options go to [core]."""
    return key.split('.', 1) if '.' in key else ('core', key)


def read_config(is_global):
    """Config for reading; outside a repository only global values exist."""
    if not is_global:
        repo = Repository.find_repository()
        if repo:
            return repo.config
    return Config()


def load_config(is_global):
    """Repository config (layered over global), or global only."""
    if is_global:
        return Config()
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a guardian repository (use --global for global config)"))
        raise click.Abort()
    return repo.config


@click.group('config')
def config_cmd():
    """Get and set repository or global options."""
    pass


@config_cmd.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--global', 'is_global', is_flag=True, help='Set global config')
def config_set(key, value, is_global):
    """
    Set a config value.

    Examples:
        guardian config set user.name "Your Name"
        guardian config set core.compression true
        guardian config set --global user.email "you@example.com"
    """
    config = load_config(is_global)
    section, option = split_key(key)

    with guardian_errors("config set"):
        config.set(section, option, value, global_config=is_global)

    scope = "global" if is_global else "repository"
    click.echo(success(f"Set {scope} config: {key} = {value}"))


@config_cmd.command('get')
@click.argument('key')
@click.option('--global', 'is_global', is_flag=True, help='Get global config only')
def config_get(key, is_global):
    """
    Get a config value.

    Examples:
        guardian config get user.name
        guardian config get core.hashalgorithm
    """
    config = read_config(is_global)
    section, option = split_key(key)

    with guardian_errors("config get"):
        value = config.get(section, option)
    if value is None:
        click.echo(error(f"Config key not found: {key}"))
        raise click.Abort()
    click.echo(value)


@config_cmd.command('unset')
@click.argument('key')
@click.option('--global', 'is_global', is_flag=True, help='Unset global config')
def config_unset(key, is_global):
    """Remove a config value."""
    config = load_config(is_global)
    section, option = split_key(key)

    with guardian_errors("config unset"):
        removed = config.unset(section, option, global_config=is_global)

    if removed:
        click.echo(success(f"Unset {key}"))
    else:
        click.echo(info(f"{key} was not set"))


@config_cmd.command('list')
@click.option('--global', 'is_global', is_flag=True, help='List global config only')
def config_list(is_global):
    """
    List all config values.

    Repository values override global ones.
    """
    config = read_config(is_global)

    with guardian_errors("config list"):
        values = config.list_all()

    if not values:
        click.echo(info("No configuration set"))
        return
    for section in sorted(values):
        for key, value in sorted(values[section].items()):
            click.echo(f"{section}.{key}={value}")
