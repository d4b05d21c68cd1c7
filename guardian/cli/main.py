"""Main CLI entry point for Guardian."""

import logging

import click
from colorama import init

from guardian import __version__
from guardian.cli.output import BANNER
from guardian.cli.commands import (init_cmd, snapshot_cmd, log_cmd, head_cmd,
                                   cat_file_cmd, count_objects_cmd, stash_cmd, config_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class GuardianGroup(click.Group):
    """Custom Group class to display banner before help."""

    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=GuardianGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Log debug output to stderr')
def cli(verbose):
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s %(name)s %(levelname)s: %(message)s',
        )


# Register commands
cli.add_command(init_cmd)
cli.add_command(snapshot_cmd)
cli.add_command(log_cmd)
cli.add_command(head_cmd)
cli.add_command(cat_file_cmd)
cli.add_command(count_objects_cmd)
cli.add_command(stash_cmd)
cli.add_command(config_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
