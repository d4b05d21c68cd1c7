"""Unit tests for commit history traversal."""

import pytest
from guardian.core.errors import DanglingRef, InvalidArgument
from guardian.core.objects import Blob
from guardian.operations.history import walk_history


def ids(history):
    return [commit_id for commit_id, _ in history]


def test_unborn_head_is_empty(repo):
    """Test a repository without commits has no history."""
    assert walk_history(repo, 10) == []


def test_dangling_head(repo):
    """Test a HEAD that cannot be resolved is an error, not empty history."""
    repo.head_file.write_text("ref: refs/heads/missing\n")
    with pytest.raises(DanglingRef):
        walk_history(repo, 10)


@pytest.mark.parametrize('max_count', [0, -1])
def test_max_count_must_be_positive(repo, max_count):
    """Test non-positive limits are rejected."""
    with pytest.raises(InvalidArgument):
        walk_history(repo, max_count)


def test_linear_chain(repo, make_chain):
    """Test a chain of N commits walks newest first."""
    chain = make_chain(repo, 5)
    repo.refs.update_ref('refs/heads/main', chain[-1])

    assert ids(walk_history(repo, 10)) == list(reversed(chain))


def test_max_count_limits(repo, make_chain):
    """Test only max_count commits are returned."""
    chain = make_chain(repo, 5)
    repo.refs.update_ref('refs/heads/main', chain[-1])

    assert ids(walk_history(repo, 2)) == [chain[4], chain[3]]
    assert len(walk_history(repo, 5)) == 5


def test_diamond_visits_each_commit_once(repo, make_commit):
    """Test merge diamonds do not duplicate the shared ancestor."""
    root = make_commit(repo, "root", timestamp=1)
    left = make_commit(repo, "left", [root], timestamp=2)
    right = make_commit(repo, "right", [root], timestamp=3)
    merge = make_commit(repo, "merge", [left, right], timestamp=4)
    repo.refs.update_ref('refs/heads/main', merge)

    assert ids(walk_history(repo, 10)) == [merge, left, right, root]


def test_breadth_first_order(repo, make_commit):
    """Test commits are visited level by level."""
    a = make_commit(repo, "a")
    b = make_commit(repo, "b", [a])
    c = make_commit(repo, "c")
    d = make_commit(repo, "d", [b, c])

    assert ids(walk_history(repo, 10, start=d)) == [d, b, c, a]


def test_multiple_starts(repo, make_commit):
    """Test walking from several tips."""
    a = make_commit(repo, "a")
    b = make_commit(repo, "b", [a])
    c = make_commit(repo, "c", [a])

    assert ids(walk_history(repo, 10, start=[b, c])) == [b, c, a]


def test_skips_missing_commits(repo, make_commit):
    """Test missing start ids are skipped rather than failing the walk."""
    a = make_commit(repo, "a")
    assert ids(walk_history(repo, 10, start=['f' * 64, a])) == [a]


def test_skips_corrupt_commits(repo, make_commit):
    """Test a corrupt parent ends that branch of the walk."""
    a = make_commit(repo, "a")
    b = make_commit(repo, "b", [a])
    repo.store.clear_cache()
    repo.object_path(a).write_bytes(b'corrupted')

    assert ids(walk_history(repo, 10, start=b)) == [b]


def test_skips_non_commits(repo, make_commit):
    """Test blobs and trees among the start ids are ignored."""
    blob_id, _ = repo.write_object(Blob(b'not a commit'))
    a = make_commit(repo, "a")

    assert ids(walk_history(repo, 10, start=[blob_id, a])) == [a]


def test_returns_commit_objects(repo_with_commits):
    """Test each entry carries the parsed commit."""
    history = walk_history(repo_with_commits, 1)
    commit_id, commit = history[0]
    assert commit_id == repo_with_commits.commit_ids[-1]
    assert commit.message == "Commit 2"
