"""Core functionality for Guardian.

This module contains the core data structures:
- Guardian objects (Blob, Tree, Commit)
- Object storage with staged writes
- Repository management
- Reference management and the ref journal
- Configuration management
- Hashing utilities

For history, snapshots and stash, see guardian.operations
For utilities like ignore rules, see guardian.utils
"""

from guardian.core.errors import (GuardianError, InvalidArgument, NotFound, CorruptObject,
                                  DanglingRef, UnbornBranch, StorageError)
from guardian.core.hash import Hasher, Sha256Hasher, Blake2bHasher, get_hasher, hash_object, hash_file
from guardian.core.objects import PgObject, Blob, Tree, TreeEntry, Commit
from guardian.core.storage import (BaseObjectStore, ObjectStore, CachedObjectStore,
                                   StagedObjectWrite)
from guardian.core.repository import Repository
from guardian.core.refs import RefManager
from guardian.core.journal import Journal
from guardian.core.config import Config, get_config

__all__ = [
    'GuardianError', 'InvalidArgument', 'NotFound', 'CorruptObject',
    'DanglingRef', 'UnbornBranch', 'StorageError',
    'Hasher', 'Sha256Hasher', 'Blake2bHasher', 'get_hasher',
    'PgObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'BaseObjectStore', 'ObjectStore', 'CachedObjectStore', 'StagedObjectWrite',
    'Repository',
    'RefManager',
    'Journal',
    'Config',
    'get_config',
    'hash_object',
    'hash_file',
]
