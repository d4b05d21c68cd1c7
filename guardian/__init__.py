"""Guardian - content-addressed versioning core implemented in Python."""

__version__ = '0.1.0'

from guardian.core.repository import Repository
from guardian.core.objects import PgObject, Blob, Tree, Commit

__all__ = [
    'Repository',
    'PgObject',
    'Blob',
    'Tree',
    'Commit',
]
