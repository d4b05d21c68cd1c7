"""Helpers shared by CLI commands."""

from contextlib import contextmanager

import click

from guardian.core.errors import GuardianError, NotFound
from guardian.core.repository import Repository
from guardian.cli.output import error


def open_repository() -> Repository:
    """Open the repository enclosing the current directory or abort."""
    try:
        return Repository.open()
    except NotFound:
        click.echo(error("Not a guardian repository"))
        raise click.Abort()


@contextmanager
def guardian_errors(action: str):
    """Report a GuardianError as '<action> failed: ...' and abort."""
    try:
        yield
    except GuardianError as e:
        click.echo(error(f"{action} failed: {e}"))
        raise click.Abort()
