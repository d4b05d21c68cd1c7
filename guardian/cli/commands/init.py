"""Initialize a new Guardian repository."""

import click
from pathlib import Path
from guardian.core.hash import DEFAULT_HASH_ALGORITHM, HASHERS
from guardian.core.repository import Repository
from guardian.cli.common import guardian_errors
from guardian.cli.output import success, error, info


@click.command('init')
@click.argument('path', default='.')
@click.option('-b', '--initial-branch', default='main', help='Name of the initial branch')
@click.option('--hash', 'hash_algorithm', type=click.Choice(sorted(HASHERS)),
              default=DEFAULT_HASH_ALGORITHM, help='Object id hash function')
def init_cmd(path, initial_branch, hash_algorithm):
    """
    Initialize a new Guardian repository.

    Creates a .pg directory with the object store, refs and config.

    Examples:
        guardian init                  # Initialize in current directory
        guardian init my-project       # Initialize in my-project directory
        guardian init --hash blake2b   # Use BLAKE2b object ids
    """
    repo_path = Path(path).resolve()

    if (repo_path / Repository.PG_DIR).exists():
        click.echo(error(f"Repository already exists at {repo_path}"))
        raise click.Abort()

    if not repo_path.exists():
        repo_path.mkdir(parents=True)
        click.echo(info(f"Created directory {repo_path}"))

    with guardian_errors("init"):
        repo = Repository(repo_path).init(initial_branch, hash_algorithm)

    click.echo(success(f"Initialized empty Guardian repository in {repo.pg_dir}"))
    click.echo(info(f"Branch: {initial_branch} (no snapshots yet)"))
    click.echo(info(f"Hash: {hash_algorithm}"))
