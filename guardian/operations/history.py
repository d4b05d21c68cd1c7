"""Commit history traversal for Guardian."""

import logging
from collections import deque
from typing import Iterable, List, Optional, Tuple, Union

from guardian.core.errors import CorruptObject, InvalidArgument, NotFound, UnbornBranch
from guardian.core.objects import Commit

logger = logging.getLogger(__name__)


def walk_history(
    repo,
    max_count: int,
    start: Optional[Union[str, Iterable[str]]] = None,
) -> List[Tuple[str, Commit]]:
    """
    Walk commit history breadth-first.

    Each commit is visited at most once, so merge diamonds do not produce
    duplicates. Commits that are missing or fail to parse are skipped
    rather than aborting the walk; this is the only place the core
    tolerates per-object errors.

    Args:
        repo: Repository instance
        max_count: Stop after this many commits
        start: Commit id(s) to start from (defaults to resolved HEAD)

    Returns:
        List of (commit_id, commit) tuples, nearest first. Empty when HEAD
        is on an unborn branch.

    Raises:
        InvalidArgument: If max_count is not positive
        DanglingRef: If HEAD cannot be resolved
    """
    if max_count <= 0:
        raise InvalidArgument(f"max_count must be positive, got {max_count}")

    if start is None:
        try:
            queue = deque([repo.refs.resolve_head()])
        except UnbornBranch:
            return []
    elif isinstance(start, str):
        queue = deque([start])
    else:
        queue = deque(start)

    history = []
    visited = set()

    while queue and len(history) < max_count:
        commit_id = queue.popleft()
        if commit_id in visited:
            continue
        visited.add(commit_id)

        try:
            commit = repo.read_object(commit_id)
        except (NotFound, CorruptObject, InvalidArgument) as exc:
            logger.debug("Skipping unreadable commit %s: %s", commit_id, exc)
            continue
        if not isinstance(commit, Commit):
            logger.debug("Skipping %s: %s is not a commit", commit_id, commit.type)
            continue

        history.append((commit_id, commit))
        queue.extend(p for p in commit.parents if p not in visited)

    return history
