"""Reference management for Guardian."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from guardian.utils.fs import atomic_write_text

from .errors import (DanglingRef, InvalidArgument, NotFound, StorageError,
                     UnbornBranch)
from .journal import Journal, PendingRefUpdate
from .objects import Commit, is_object_id

logger = logging.getLogger(__name__)

HEAD = 'HEAD'
HEADS_PREFIX = 'refs/heads/'
SYMBOLIC_PREFIX = 'ref: '
DEFAULT_HEAD_REF = 'refs/heads/main'


def branch_ref(branch_name: str) -> str:
    """Full ref name for a branch name ('main' -> 'refs/heads/main')."""
    if branch_name.startswith('refs/'):
        return branch_name
    return HEADS_PREFIX + branch_name


def check_ref_name(ref_name: str) -> str:
    """
    Validate a full ref name such as 'refs/heads/main'.

    Raises:
        InvalidArgument: On empty names, empty or dot segments, absolute
            paths and control characters
    """
    if not isinstance(ref_name, str) or not ref_name.startswith('refs/'):
        raise InvalidArgument(f"Invalid ref name: {ref_name!r}")
    segments = ref_name.split('/')
    for segment in segments:
        if not segment or segment.startswith('.') or segment.endswith('.lock'):
            raise InvalidArgument(f"Invalid ref name: {ref_name!r}")
        if any(c in segment for c in '\\\0\n\r '):
            raise InvalidArgument(f"Invalid ref name: {ref_name!r}")
    if len(segments) < 3:
        raise InvalidArgument(f"Invalid ref name: {ref_name!r}")
    return ref_name


class RefManager:
    """
    Manages references (branches, HEAD).

    A ref file holds one of:
    - a commit id (direct)
    - 'ref: <ref name>' (symbolic, followed at most one hop)
    - nothing (a branch that exists but has no commits yet)
    """

    def __init__(self, repo):
        """
        Initialize reference manager.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.pg_dir = repo.pg_dir
        self.refs_dir = self.pg_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.head_file = self.pg_dir / HEAD
        self.journal = Journal(self.pg_dir / 'journal.log')

    def _ref_path(self, ref_name: str) -> Path:
        if ref_name == HEAD:
            return self.head_file
        return self.pg_dir / check_ref_name(ref_name)

    def _read_raw(self, ref_name: str) -> Optional[str]:
        """Raw ref content, or None if the ref file does not exist."""
        path = self._ref_path(ref_name)
        try:
            return path.read_text(encoding='utf-8').strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Failed to read ref {ref_name}: {exc}") from exc

    def _write_raw(self, ref_name: str, content: str) -> None:
        path = self._ref_path(ref_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(path, content + '\n' if content else '')
        except OSError as exc:
            raise StorageError(f"Failed to write ref {ref_name}: {exc}") from exc

    def _journaled_write(self, ref_name: str, content: str, description: str) -> None:
        with self.journal.transaction(ref_name, content, description):
            self._write_raw(ref_name, content)
        logger.debug("Ref %s -> %s (%s)", ref_name, content or '<unborn>', description)

    def recover(self) -> List[PendingRefUpdate]:
        """Replay ref updates left unfinished by a crash."""
        return self.journal.recover(
            lambda update: self._write_raw(update.ref_name, update.new_value)
        )

    def _check_commit(self, commit_id: str) -> str:
        if not is_object_id(commit_id):
            raise InvalidArgument(f"Invalid commit id: {commit_id!r}")
        obj = self.repo.read_object(commit_id)
        if not isinstance(obj, Commit):
            raise InvalidArgument(f"Object {commit_id} is a {obj.type}, not a commit")
        return commit_id

    @property
    def head_ref(self) -> str:
        """
        Raw HEAD value without resolving it.

        Returns:
            Branch ref name when attached, commit id when detached
        """
        content = self._read_raw(HEAD)
        if content is None:
            return DEFAULT_HEAD_REF
        if content.startswith(SYMBOLIC_PREFIX):
            return content[len(SYMBOLIC_PREFIX):].strip()
        return content

    def resolve_ref(self, ref_name: str, max_hops: int = 1) -> str:
        """
        Resolve a ref to a commit id.

        Args:
            ref_name: Full ref name
            max_hops: Symbolic indirections still allowed

        Returns:
            Commit id

        Raises:
            DanglingRef: If the ref (or its target) does not exist, holds
                garbage, or needs more symbolic hops than allowed
            UnbornBranch: If the ref exists but has no commit yet
        """
        content = self._read_raw(ref_name)
        if content is None:
            raise DanglingRef(f"Ref {ref_name} does not exist")
        if not content:
            raise UnbornBranch(ref_name)

        if content.startswith(SYMBOLIC_PREFIX):
            target = content[len(SYMBOLIC_PREFIX):].strip()
            if max_hops <= 0:
                raise DanglingRef(f"Ref {ref_name} -> {target}: too many symbolic levels")
            try:
                return self.resolve_ref(target, max_hops - 1)
            except InvalidArgument:
                raise DanglingRef(f"Ref {ref_name} points at invalid name {target!r}") from None

        if not is_object_id(content):
            raise DanglingRef(f"Ref {ref_name} holds an invalid value: {content!r}")
        return content

    def resolve_head(self) -> str:
        """
        Resolve HEAD to a commit id.

        An attached HEAD is followed exactly one hop to its branch, which
        must hold a commit id directly.

        Raises:
            UnbornBranch: If HEAD's branch has no commits yet
            DanglingRef: If HEAD's branch does not exist
        """
        content = self._read_raw(HEAD)
        if content is None:
            content = SYMBOLIC_PREFIX + DEFAULT_HEAD_REF
        if not content:
            raise DanglingRef("HEAD is empty")

        if content.startswith(SYMBOLIC_PREFIX):
            target = content[len(SYMBOLIC_PREFIX):].strip()
            try:
                return self.resolve_ref(target, max_hops=0)
            except InvalidArgument:
                raise DanglingRef(f"HEAD points at invalid name {target!r}") from None

        if not is_object_id(content):
            raise DanglingRef(f"HEAD holds an invalid value: {content!r}")
        return content

    def read_ref(self, ref_name: str) -> Optional[str]:
        """
        Read a ref and return its commit id.

        Returns:
            Commit id or None if the ref is missing, unborn or dangling
        """
        try:
            if ref_name == HEAD:
                return self.resolve_head()
            return self.resolve_ref(ref_name)
        except (DanglingRef, UnbornBranch):
            return None

    def ref_exists(self, ref_name: str) -> bool:
        """Check if a ref file exists (unborn branches count)."""
        return self._read_raw(ref_name) is not None

    def update_ref(self, ref_name: str, commit_id: str, description: str = '') -> None:
        """
        Point a ref at a commit, creating it if needed.

        Raises:
            InvalidArgument: If the name is invalid or the target is not a commit
            NotFound: If the commit does not exist
        """
        check_ref_name(ref_name)
        self._check_commit(commit_id)
        self._journaled_write(ref_name, commit_id, description or f"update {ref_name}")

    def write_symbolic_ref(self, ref_name: str, target: str, description: str = '') -> None:
        """Make ref_name a symbolic pointer to target."""
        check_ref_name(ref_name)
        check_ref_name(target)
        self._journaled_write(
            ref_name, SYMBOLIC_PREFIX + target, description or f"link {ref_name} to {target}"
        )

    def create_branch(self, branch_name: str, commit_id: Optional[str] = None) -> str:
        """
        Create a new branch.

        Args:
            branch_name: Branch name or full ref name
            commit_id: Commit to point at; None creates an unborn branch

        Returns:
            Full ref name

        Raises:
            InvalidArgument: If the branch already exists
        """
        ref_name = check_ref_name(branch_ref(branch_name))
        if self.ref_exists(ref_name):
            raise InvalidArgument(f"Branch {branch_name} already exists")
        if commit_id is None:
            self._journaled_write(ref_name, '', f"create {ref_name}")
        else:
            self.update_ref(ref_name, commit_id, f"create {ref_name}")
        return ref_name

    def set_head(self, target: str) -> None:
        """
        Set HEAD to a branch (attached) or a commit id (detached).

        Args:
            target: Ref name starting with 'refs/' or a commit id

        Raises:
            NotFound: If the branch or commit does not exist
        """
        if target.startswith('refs/'):
            check_ref_name(target)
            if not self.ref_exists(target):
                raise NotFound(f"Ref {target} does not exist")
            self._journaled_write(HEAD, SYMBOLIC_PREFIX + target, f"checkout {target}")
        else:
            self._check_commit(target)
            self._journaled_write(HEAD, target, f"detach at {target}")

    def get_current_branch(self) -> Optional[str]:
        """
        Get the current branch name.

        Returns:
            Branch name or None if in detached HEAD state
        """
        head = self.head_ref
        if head.startswith(HEADS_PREFIX):
            return head[len(HEADS_PREFIX):]
        return None

    def is_detached_head(self) -> bool:
        """Check if HEAD holds a commit id rather than a ref name."""
        return not self.head_ref.startswith('refs/')

    def delete_ref(self, ref_name: str) -> None:
        """
        Delete a ref.

        Raises:
            InvalidArgument: If ref_name is the branch HEAD is attached to
            NotFound: If the ref does not exist
        """
        path = self._ref_path(check_ref_name(ref_name))
        if self.head_ref == ref_name:
            raise InvalidArgument(f"Cannot delete {ref_name}: HEAD is attached to it")
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFound(f"Ref {ref_name} does not exist") from None
        except OSError as exc:
            raise StorageError(f"Failed to delete ref {ref_name}: {exc}") from exc
        logger.debug("Deleted ref %s", ref_name)

    def list_refs(self, prefix: str = 'refs/') -> List[str]:
        """
        List all refs under a prefix.

        Args:
            prefix: Name prefix, e.g. 'refs/heads/'

        Returns:
            Sorted full ref names
        """
        refs = []
        if not self.refs_dir.is_dir():
            return refs
        for ref_file in self.refs_dir.rglob('*'):
            if not ref_file.is_file() or ref_file.name.startswith('.'):
                continue
            name = ref_file.relative_to(self.pg_dir).as_posix()
            if name.startswith(prefix):
                refs.append(name)
        return sorted(refs)

    def list_branches(self) -> List[Tuple[str, Optional[str]]]:
        """
        List all branches.

        Returns:
            List of (branch_name, commit_id) tuples; commit_id is None
            for unborn branches
        """
        return [
            (name[len(HEADS_PREFIX):], self.read_ref(name))
            for name in self.list_refs(HEADS_PREFIX)
        ]

    def __repr__(self) -> str:
        return f"RefManager(head={self.head_ref})"
