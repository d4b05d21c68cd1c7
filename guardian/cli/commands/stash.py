"""Stash command for Guardian."""

import click
from datetime import datetime
from colorama import Fore, Style

from guardian.cli.common import guardian_errors, open_repository
from guardian.cli.output import success, info


def parse_stash_ref(ref: str) -> int:
    """
    Parse stash reference to index.

    Accepts:
        - "stash@{0}", "stash@{1}", etc.
        - "0", "1", etc.

    Returns:
        int: Stash index

    Raises:
        click.BadParameter: If invalid format
    """
    if ref.startswith('stash@{') and ref.endswith('}'):
        ref = ref[7:-1]
    try:
        return int(ref)
    except ValueError:
        raise click.BadParameter(f"Invalid stash reference: {ref}") from None


@click.group('stash')
def stash_cmd():
    """Save snapshots of the working directory without moving HEAD.

    Use 'guardian stash push -m MSG' to record a stash.
    Use 'guardian stash list' to see all stashes, newest first.
    """
    pass


@stash_cmd.command('push')
@click.option('-m', '--message', required=True, help='Stash message')
@click.option('--author', help='Author name and email (format: "Name <email>")')
def push(message, author):
    """Record the working directory as a new stash."""
    repo = open_repository()

    with guardian_errors("stash"):
        entry = repo.stash.create(message, author=author)

    click.echo(success(f"Saved working directory as stash@{{0}}: {entry.message}"))
    click.echo(info(f"Commit: {entry.commit_id[:12]}"))


@stash_cmd.command('list')
def list_stashes():
    """List all stashes, newest first."""
    repo = open_repository()

    with guardian_errors("stash list"):
        entries = repo.stash.list()

    if not entries:
        click.echo(info("No stashes"))
        return

    for i, entry in enumerate(entries):
        date_str = datetime.fromtimestamp(entry.timestamp).strftime("%b %d %H:%M")
        click.echo(f"{Fore.YELLOW}stash@{{{i}}}{Style.RESET_ALL}: {entry.message} ({date_str})")


@stash_cmd.command('show')
@click.argument('stash_ref', default='0')
def show(stash_ref):
    """Show a stash entry and its top-level contents."""
    index = parse_stash_ref(stash_ref)
    repo = open_repository()

    with guardian_errors("stash show"):
        entry = repo.stash.get(index)
        commit = repo.read_object(entry.commit_id)
        tree = repo.read_object(commit.tree)

    click.echo(f"{Fore.YELLOW}stash@{{{index}}}{Style.RESET_ALL}: {entry.message}")
    click.echo(f"  Commit: {entry.commit_id[:12]}")
    click.echo(f"  Parent: {commit.parents[0][:12] if commit.parents else '(none)'}")
    click.echo(f"  Author: {commit.author}")
    click.echo()
    for tree_entry in tree.entries:
        suffix = '/' if tree_entry.type == 'tree' else ''
        click.echo(f"  {tree_entry.name}{suffix}")


@stash_cmd.command('drop')
@click.argument('stash_ref', default='0')
def drop(stash_ref):
    """Remove a stash entry."""
    index = parse_stash_ref(stash_ref)
    repo = open_repository()

    with guardian_errors("stash drop"):
        entry = repo.stash.drop(index)

    click.echo(success(f"Dropped stash@{{{index}}}"))
    click.echo(info(f"  {entry.message}"))


@stash_cmd.command('clear')
@click.confirmation_option(prompt='Are you sure you want to remove all stashes?')
def clear():
    """Remove all stash entries."""
    repo = open_repository()

    with guardian_errors("stash clear"):
        count = repo.stash.clear()

    if count > 0:
        click.echo(success(f"Dropped {count} stash{'es' if count > 1 else ''}"))
    else:
        click.echo(info("No stashes to clear"))
