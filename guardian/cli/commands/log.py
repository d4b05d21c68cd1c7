"""Log command - show snapshot history."""

import click
from datetime import datetime
from colorama import Fore, Style
from guardian.core.errors import DanglingRef, UnbornBranch
from guardian.cli.common import guardian_errors, open_repository
from guardian.cli.output import error, info


def format_timestamp(timestamp):
    """Format Unix timestamp to readable date."""
    try:
        return datetime.fromtimestamp(int(timestamp)).strftime("%a %b %d %H:%M:%S %Y")
    except (OverflowError, OSError, ValueError):
        return "Unknown date"


@click.command('log')
@click.option('-n', '--max-count', type=int, default=20, help='Limit number of snapshots')
@click.option('--oneline', is_flag=True, help='Show one snapshot per line')
def log_cmd(max_count, oneline):
    """
    Show snapshot history.

    Walks breadth-first from HEAD, nearest snapshots first.

    Examples:
        guardian log
        guardian log -n 5
        guardian log --oneline
    """
    repo = open_repository()

    with guardian_errors("log"):
        history = repo.walk_history(max_count)

    if not history:
        click.echo(info("No snapshots yet"))
        return

    for commit_id, commit in history:
        if oneline:
            click.echo(f"{Fore.YELLOW}{commit_id[:12]}{Style.RESET_ALL} {commit.summary}")
            continue
        click.echo(f"{Fore.YELLOW}snapshot {commit_id}{Style.RESET_ALL}")
        if len(commit.parents) > 1:
            click.echo(f"Merge: {' '.join(p[:12] for p in commit.parents)}")
        click.echo(f"Author: {commit.author}")
        click.echo(f"Date:   {format_timestamp(commit.timestamp)}")
        click.echo()
        for line in commit.message.splitlines() or ['']:
            click.echo(f"    {line}")
        click.echo()


@click.command('head')
def head_cmd():
    """
    Show what HEAD points at.

    Prints the current branch and its commit, or the detached commit.
    """
    repo = open_repository()
    branch = repo.refs.get_current_branch()

    try:
        commit_id = repo.refs.resolve_head()
    except UnbornBranch:
        click.echo(f"{branch} (no snapshots yet)")
        return
    except DanglingRef as e:
        click.echo(error(str(e)))
        raise click.Abort()

    if branch:
        click.echo(f"{branch} {commit_id}")
    else:
        click.echo(f"(detached) {commit_id}")
