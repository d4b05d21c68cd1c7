"""Shared pytest fixtures for Guardian tests."""

import os
import pytest
import tempfile
import shutil
from pathlib import Path
from guardian.core.repository import Repository
from guardian.core.objects import Blob, Tree, Commit, MODE_FILE

AUTHOR = "Test User <test@example.com>"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep ~/.guardianconfig and GUARDIAN_* variables out of tests."""
    home = tmp_path_factory.mktemp('home')
    monkeypatch.setenv('HOME', str(home))
    for key in list(os.environ):
        if key.startswith('GUARDIAN_'):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    """Create an initialized repository."""
    return Repository(temp_dir).init()


@pytest.fixture
def repo_with_config(repo):
    """Create a repository with a user identity configured."""
    repo.config.set('user', 'name', 'Test User')
    repo.config.set('user', 'email', 'test@example.com')
    return repo


@pytest.fixture
def sample_blob():
    """Create a sample blob object."""
    return Blob(b"Hello, World!\n")


@pytest.fixture
def sample_tree(repo, sample_blob):
    """Create a sample tree with one blob."""
    blob_id, _ = repo.write_object(sample_blob)
    tree = Tree()
    tree.add_entry(MODE_FILE, 'test.txt', blob_id)
    return tree


@pytest.fixture
def sample_commit(sample_tree, repo):
    """Sample commit object."""
    tree_id, _ = repo.write_object(sample_tree)
    return Commit.create(
        tree_id=tree_id,
        parent_ids=[],
        author=AUTHOR,
        message="Test commit",
        timestamp=1700000000,
    )


def _make_commit(repo, message="Test commit", parents=None, timestamp=1700000000):
    """
    Helper function to write a commit without touching any ref.

    The tree holds a single file whose content is the message, so
    different messages give different trees.

    Returns:
        str: Commit id
    """
    blob_id, _ = repo.write_object(Blob(message.encode('utf-8')))
    tree = Tree()
    tree.add_entry(MODE_FILE, 'message.txt', blob_id)
    tree_id, _ = repo.write_object(tree)
    return repo.commit_tree(tree_id, message, AUTHOR, parents=parents or [], timestamp=timestamp)


def _make_chain(repo, count):
    """Write count linear commits and return their ids, oldest first."""
    ids = []
    for i in range(count):
        parents = [ids[-1]] if ids else []
        ids.append(_make_commit(repo, f"Commit {i}", parents, timestamp=1700000000 + i))
    return ids


@pytest.fixture
def repo_with_commits(repo):
    """Repository whose main branch holds three linear commits."""
    ids = _make_chain(repo, 3)
    repo.refs.update_ref('refs/heads/main', ids[-1])
    repo.commit_ids = ids
    return repo


@pytest.fixture
def working_files(repo):
    """Create sample file structure in repository."""
    file1 = repo.work_tree / "test1.txt"
    file2 = repo.work_tree / "test2.txt"

    (repo.work_tree / "subdir").mkdir()
    file3 = repo.work_tree / "subdir" / "test3.txt"

    file1.write_text("Content 1")
    file2.write_text("Content 2")
    file3.write_text("Content 3")

    return {
        'file1': file1,
        'file2': file2,
        'file3': file3
    }


@pytest.fixture
def make_commit():
    """Factory: make_commit(repo, message, parents=None, timestamp=...) -> commit id."""
    return _make_commit


@pytest.fixture
def make_chain():
    """Factory: make_chain(repo, count) -> linear commit ids, oldest first."""
    return _make_chain
