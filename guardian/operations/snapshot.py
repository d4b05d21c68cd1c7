"""Build tree objects from the working directory."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from guardian.core.errors import InvalidArgument, StorageError
from guardian.core.objects import MODE_EXECUTABLE, MODE_FILE, MODE_TREE, Blob, Tree
from guardian.utils.ignore import IgnoreRules, get_ignore_rules

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Writes the working directory into the object store as a tree.

    Blobs of one directory are staged together and committed as a batch
    before the directory's tree is written, so a tree never references an
    object that is not on disk. Entries are added sorted by name, which
    makes the tree id depend only on content.
    """

    def __init__(self, repo, ignore: Optional[IgnoreRules] = None):
        """
        Initialize snapshot builder.

        Args:
            repo: Repository instance
            ignore: Ignore rules (defaults to built-ins plus .pgignore)
        """
        self.repo = repo
        self.work_tree = Path(repo.work_tree)
        self.ignore = ignore if ignore is not None else get_ignore_rules(self.work_tree)
        self.files_hashed = 0
        self.objects_written = 0

    def build_tree(self, include_roots: Optional[Iterable[str]] = None) -> str:
        """
        Snapshot the working directory.

        Args:
            include_roots: Top-level directory names to restrict the snapshot
                to; missing roots are skipped

        Returns:
            Root tree id
        """
        if not include_roots:
            return self._write_directory(self.work_tree, '', keep_empty=True)

        tree = Tree()
        for name in sorted(set(include_roots)):
            if not name or name in ('.', '..') or '/' in name or '\\' in name:
                raise InvalidArgument(f"Include root must be a top-level directory name: {name!r}")
            directory = self.work_tree / name
            if not directory.is_dir() or self.ignore.is_ignored(name, is_dir=True):
                logger.debug("Include root %s missing or ignored, skipping", name)
                continue
            subtree_id = self._write_directory(directory, name, keep_empty=True)
            tree.add_entry(MODE_TREE, name, subtree_id)
        return self._write_tree(tree)

    def _scan(self, directory: Path, rel_dir: str) -> List[Tuple[str, str, Path]]:
        """Return (name, kind, path) for every non-ignored child, sorted by name."""
        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise StorageError(f"Cannot list {directory}: {exc}") from exc

        result = []
        for child in children:
            rel_path = f"{rel_dir}/{child.name}" if rel_dir else child.name
            if child.is_symlink():
                logger.debug("Skipping symlink %s", rel_path)
                continue
            if child.is_dir():
                kind = 'dir'
            elif child.is_file():
                kind = 'file'
            else:
                continue
            if self.ignore.is_ignored(rel_path, is_dir=(kind == 'dir')):
                continue
            result.append((child.name, kind, Path(child.path)))
        return result

    def _write_directory(self, directory: Path, rel_dir: str, keep_empty: bool = False) -> Optional[str]:
        """
        Write one directory and everything below it.

        Returns:
            Tree id, or None for a directory with nothing to record
        """
        entries = []
        staged_blobs = []

        for name, kind, path in self._scan(directory, rel_dir):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if kind == 'dir':
                subtree_id = self._write_directory(path, rel_path)
                if subtree_id is not None:
                    entries.append((MODE_TREE, name, subtree_id))
                continue

            try:
                blob = Blob.from_file(path)
                executable = bool(path.stat().st_mode & 0o111)
            except OSError as exc:
                raise StorageError(f"Cannot read {rel_path}: {exc}") from exc
            staged = self.repo.stage_object(blob)
            staged_blobs.append(staged)
            entries.append((MODE_EXECUTABLE if executable else MODE_FILE, name, staged.object_id))
            self.files_hashed += 1

        if not entries and not keep_empty:
            return None

        self.objects_written += sum(1 for s in staged_blobs if not s.exists_already)
        self.repo.store.commit_staged_objects(staged_blobs)

        tree = Tree()
        for mode, name, object_id in entries:
            tree.add_entry(mode, name, object_id)
        return self._write_tree(tree)

    def _write_tree(self, tree: Tree) -> str:
        staged = self.repo.stage_object(tree)
        if not staged.exists_already:
            self.objects_written += 1
        return self.repo.commit_staged_object(staged)
