"""Stash implementation for Guardian."""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from guardian.core.errors import InvalidArgument, NotFound, StorageError
from guardian.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StashEntry:
    """
    Represents a single stash entry.

    The commit is a normal commit object whose parent is the HEAD commit
    at the time of stashing; no ref points at it.
    """
    commit_id: str                  # Stash commit
    message: str                    # User-provided message
    timestamp: int                  # Unix timestamp

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StashEntry':
        """Create from dictionary."""
        try:
            return cls(str(data['commit_id']), str(data['message']), int(data['timestamp']))
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Invalid stash entry: {data!r}") from exc

    def __repr__(self) -> str:
        return f"StashEntry({self.commit_id[:7]}, {self.message[:40]!r})"


class StashManager:
    """
    Manages the stash list for a repository.

    Stashes are stored in creation order in .pg/stash.json and listed
    newest first.
    """

    def __init__(self, repo):
        """
        Initialize stash manager.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.stash_file = repo.pg_dir / 'stash.json'

    def _load_stashes(self) -> List[StashEntry]:
        """Load stashes from disk in creation order."""
        if not self.stash_file.exists():
            return []

        try:
            data = json.loads(self.stash_file.read_text(encoding='utf-8'))
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stash file {self.stash_file} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read {self.stash_file}: {exc}") from exc
        if not isinstance(data, list):
            raise StorageError(f"Stash file {self.stash_file} does not hold a list")
        return [StashEntry.from_dict(entry) for entry in data]

    def _save_stashes(self, stashes: List[StashEntry]) -> None:
        """Save stashes to disk."""
        data = [entry.to_dict() for entry in stashes]
        try:
            atomic_write_text(self.stash_file, json.dumps(data, indent=2))
        except OSError as exc:
            raise StorageError(f"Cannot write {self.stash_file}: {exc}") from exc

    def create(
        self,
        message: str,
        author: Optional[str] = None,
        tree_id: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> StashEntry:
        """
        Record a stash.

        Writes a commit of tree_id (by default a fresh snapshot of the
        working directory) whose parent is the current HEAD commit, if any.
        No ref is moved.

        Args:
            message: Stash message
            author: Author identity (defaults to configured user)
            tree_id: Tree to stash
            timestamp: Unix timestamp (defaults to now)

        Returns:
            StashEntry: The new entry
        """
        if not message:
            raise InvalidArgument("Stash message must not be empty")
        author = self.repo.resolve_author(author)
        timestamp = int(time.time()) if timestamp is None else int(timestamp)

        if tree_id is None:
            from guardian.operations.snapshot import SnapshotBuilder
            tree_id = SnapshotBuilder(self.repo).build_tree()

        parent = self.repo.head_commit()
        commit_id = self.repo.commit_tree(
            tree_id,
            message,
            author,
            parents=[parent] if parent else [],
            timestamp=timestamp,
        )

        entry = StashEntry(commit_id, message, timestamp)
        stashes = self._load_stashes()
        stashes.append(entry)
        self._save_stashes(stashes)
        logger.info("Stashed %s: %s", commit_id[:12], message)
        return entry

    def list(self) -> List[StashEntry]:
        """
        List stashes, newest first.

        Entries with equal timestamps keep the later-created one first.
        """
        stashes = self._load_stashes()
        order = sorted(range(len(stashes)),
                       key=lambda i: (stashes[i].timestamp, i), reverse=True)
        return [stashes[i] for i in order]

    def get(self, index: int = 0) -> StashEntry:
        """
        Get stash at index (0 is the newest).

        Raises:
            NotFound: If index is out of range
        """
        stashes = self.list()
        if index < 0 or index >= len(stashes):
            raise NotFound(f"No stash at index {index}")
        return stashes[index]

    def drop(self, index: int = 0) -> StashEntry:
        """
        Remove stash at index (0 is the newest).

        The stash commit object stays in the store.

        Returns:
            StashEntry: The dropped entry
        """
        target = self.get(index)
        stashes = self._load_stashes()
        stashes.remove(target)
        self._save_stashes(stashes)
        logger.info("Dropped stash %s", target.commit_id[:12])
        return target

    def clear(self) -> int:
        """
        Remove all stashes.

        Returns:
            Number of stashes removed
        """
        count = len(self._load_stashes())
        if self.stash_file.exists():
            self.stash_file.unlink()
        return count

    def __len__(self) -> int:
        return len(self._load_stashes())
