"""Snapshot command - record the working directory."""

import click
from guardian.cli.common import guardian_errors, open_repository
from guardian.cli.output import success, info


@click.command('snapshot')
@click.option('-m', '--message', required=True, help='Snapshot message')
@click.option('--author', help='Author name and email (format: "Name <email>")')
@click.option('--root', 'roots', multiple=True,
              help='Only include this top-level directory (repeatable)')
def snapshot_cmd(message, author, roots):
    """
    Record a snapshot of the working directory.

    Hashes every non-ignored file, writes the trees and a commit, then
    advances the current branch (or the detached HEAD).

    Examples:
        guardian snapshot -m "Initial snapshot"
        guardian snapshot -m "Docs only" --root docs
    """
    repo = open_repository()

    with guardian_errors("snapshot"):
        parent = repo.head_commit()
        commit_id = repo.snapshot(message, author=author, include_roots=list(roots) or None)
        commit = repo.read_object(commit_id)

    branch = repo.refs.get_current_branch()
    click.echo(success(f"[{branch or 'detached HEAD'} {commit_id[:12]}] {commit.summary}"))
    click.echo(info(f"Author: {commit.author}"))
    click.echo(info(f"Tree: {commit.tree[:12]}"))
    if parent:
        click.echo(info(f"Parent: {parent[:12]}"))
    else:
        click.echo(info("(root snapshot)"))
