"""CLI commands for Guardian."""

from guardian.cli.commands.init import init_cmd
from guardian.cli.commands.snapshot import snapshot_cmd
from guardian.cli.commands.log import log_cmd, head_cmd
from guardian.cli.commands.objects import cat_file_cmd, count_objects_cmd
from guardian.cli.commands.stash import stash_cmd
from guardian.cli.commands.config import config_cmd

__all__ = ['init_cmd', 'snapshot_cmd', 'log_cmd', 'head_cmd',
           'cat_file_cmd', 'count_objects_cmd', 'stash_cmd', 'config_cmd']
