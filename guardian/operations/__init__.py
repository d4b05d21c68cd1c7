"""Operations module for high-level Guardian operations.

This module contains:
- History traversal
- Working directory snapshots
- Stash management
"""

from guardian.operations.history import walk_history
from guardian.operations.snapshot import SnapshotBuilder
from guardian.operations.stash import StashManager, StashEntry

__all__ = [
    'walk_history',
    'SnapshotBuilder',
    'StashManager', 'StashEntry',
]
