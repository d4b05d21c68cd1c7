"""Object inspection commands - cat-file and count-objects."""

import click
from colorama import Fore, Style
from guardian.core.errors import NotFound
from guardian.core.objects import Blob, Commit, Tree
from guardian.cli.common import guardian_errors, open_repository
from guardian.cli.output import error, info


def resolve_object_id(repo, prefix):
    """
    Expand an abbreviated object id.

    Raises:
        NotFound: If nothing or more than one object matches
    """
    prefix = prefix.lower()
    if repo.contains(prefix):
        return prefix
    matches = repo.store.find_by_prefix(prefix) if len(prefix) >= 4 else []
    if not matches:
        raise NotFound(f"Object not found: {prefix}")
    if len(matches) > 1:
        raise NotFound(f"Ambiguous object id {prefix}: {len(matches)} matches")
    return matches[0]


@click.command('cat-file')
@click.option('-t', '--type', 'show_type', is_flag=True, help='Show object type')
@click.option('-s', '--size', 'show_size', is_flag=True, help='Show payload size')
@click.option('-p', '--pretty', is_flag=True, help='Pretty-print object content')
@click.argument('object_id')
def cat_file_cmd(show_type, show_size, pretty, object_id):
    """
    Show object content, type, or size.

    OBJECT_ID may be abbreviated to at least 4 characters.

    Examples:
        guardian cat-file -t 3f2a      # Show object type
        guardian cat-file -p 3f2a      # Pretty-print object content
    """
    if not (show_type or show_size or pretty):
        click.echo(error("One of -t, -s or -p is required"))
        raise click.Abort()

    repo = open_repository()

    with guardian_errors("cat-file"):
        full_id = resolve_object_id(repo, object_id)
        obj = repo.read_object(full_id)

    if show_type:
        click.echo(obj.type)
        return

    if show_size:
        click.echo(len(obj.serialize()))
        return

    if isinstance(obj, Commit):
        click.echo(f"{Fore.YELLOW}tree {obj.tree}{Style.RESET_ALL}")
        for parent in obj.parents:
            click.echo(f"{Fore.YELLOW}parent {parent}{Style.RESET_ALL}")
        click.echo(f"author {obj.author}")
        click.echo(f"committer {obj.committer}")
        click.echo(f"timestamp {obj.timestamp}")
        click.echo()
        click.echo(obj.message)
    elif isinstance(obj, Tree):
        for entry in obj.entries:
            click.echo(f"{entry.mode} {entry.type} {Fore.YELLOW}{entry.object_id}{Style.RESET_ALL}    {entry.name}")
    elif isinstance(obj, Blob):
        try:
            click.echo(obj.data.decode('utf-8'), nl=False)
        except UnicodeDecodeError:
            click.echo(f"<binary data: {len(obj.data)} bytes>")


@click.command('count-objects')
@click.option('-v', '--verbose', is_flag=True, help='Break down by object type')
def count_objects_cmd(verbose):
    """
    Count stored objects and their disk usage.

    Examples:
        guardian count-objects
        guardian count-objects -v
    """
    repo = open_repository()

    count = 0
    size = 0
    by_type = {}
    with guardian_errors("count-objects"):
        for oid in repo.store.iter_object_ids():
            count += 1
            size += repo.object_path(oid).stat().st_size
            if verbose:
                obj_type = repo.read_object(oid).type
                by_type[obj_type] = by_type.get(obj_type, 0) + 1

    click.echo(f"{count} objects, {size / 1024:.1f} KiB")
    if verbose:
        for obj_type in sorted(by_type):
            click.echo(info(f"{obj_type}: {by_type[obj_type]}"))
