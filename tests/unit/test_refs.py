"""Unit tests for reference management."""

import pytest
from guardian.core.errors import DanglingRef, InvalidArgument, NotFound, UnbornBranch
from guardian.core.refs import RefManager, branch_ref, check_ref_name


def test_ref_manager_init(repo):
    """Test RefManager initialization."""
    refs = RefManager(repo)
    assert refs.repo == repo
    assert refs.pg_dir == repo.pg_dir
    assert refs.head_file == repo.head_file


def test_branch_ref():
    """Test short branch names expand to full ref names."""
    assert branch_ref('main') == 'refs/heads/main'
    assert branch_ref('refs/heads/x') == 'refs/heads/x'


@pytest.mark.parametrize('name', [
    'main', 'refs/main', 'refs//main', 'refs/heads/.hidden', 'refs/heads/x.lock',
    'refs/heads/a b', 'refs/heads/a\\b', '/refs/heads/x', 'refs/heads/',
])
def test_check_ref_name_invalid(name):
    """Test malformed ref names are rejected."""
    with pytest.raises(InvalidArgument):
        check_ref_name(name)


def test_check_ref_name_valid():
    """Test nested names are allowed."""
    assert check_ref_name('refs/heads/feature/login') == 'refs/heads/feature/login'


def test_get_current_branch_on_main(repo):
    """Test getting current branch when on main."""
    assert repo.refs.get_current_branch() == "main"
    assert repo.refs.head_ref == 'refs/heads/main'


def test_get_current_branch_detached(repo):
    """Test getting current branch in detached HEAD state."""
    repo.head_file.write_text("a" * 64 + "\n")
    assert repo.refs.get_current_branch() is None
    assert repo.refs.is_detached_head() is True


def test_resolve_head_unborn(repo):
    """Test an empty branch file means unborn, not missing."""
    with pytest.raises(UnbornBranch):
        repo.refs.resolve_head()
    assert repo.refs.read_ref('HEAD') is None


def test_resolve_head_dangling(repo):
    """Test HEAD pointing at a missing branch."""
    repo.head_file.write_text("ref: refs/heads/nowhere\n")
    with pytest.raises(DanglingRef):
        repo.refs.resolve_head()


def test_resolve_head_attached(repo_with_commits):
    """Test HEAD resolves through its branch."""
    assert repo_with_commits.refs.resolve_head() == repo_with_commits.commit_ids[-1]


def test_resolve_head_detached(repo_with_commits):
    """Test a detached HEAD resolves to itself."""
    first = repo_with_commits.commit_ids[0]
    repo_with_commits.refs.set_head(first)
    assert repo_with_commits.refs.resolve_head() == first
    assert repo_with_commits.head_file.read_text().strip() == first


def test_resolve_head_single_hop(repo_with_commits):
    """Test HEAD -> branch -> branch is not followed."""
    refs = repo_with_commits.refs
    refs.write_symbolic_ref('refs/heads/alias', 'refs/heads/main')
    repo_with_commits.head_file.write_text("ref: refs/heads/alias\n")
    with pytest.raises(DanglingRef):
        refs.resolve_head()

    # A symbolic ref on its own is followed once
    assert refs.resolve_ref('refs/heads/alias') == repo_with_commits.commit_ids[-1]


def test_resolve_ref_garbage(repo):
    """Test a ref holding something other than an id."""
    (repo.heads_dir / 'junk').write_text("not an id\n")
    with pytest.raises(DanglingRef):
        repo.refs.resolve_ref('refs/heads/junk')


def test_update_ref(repo_with_commits):
    """Test pointing a ref at a commit."""
    refs = repo_with_commits.refs
    first = repo_with_commits.commit_ids[0]
    refs.update_ref('refs/heads/main', first)

    assert (repo_with_commits.heads_dir / 'main').read_text() == first + '\n'
    assert refs.read_ref('refs/heads/main') == first
    assert not refs.journal.path.exists()


def test_update_ref_requires_commit(repo, sample_tree):
    """Test refs can only point at stored commits."""
    tree_id, _ = repo.write_object(sample_tree)
    with pytest.raises(InvalidArgument):
        repo.refs.update_ref('refs/heads/main', tree_id)
    with pytest.raises(NotFound):
        repo.refs.update_ref('refs/heads/main', '0' * 64)


def test_create_branch(repo_with_commits):
    """Test creating a new branch."""
    refs = repo_with_commits.refs
    head = repo_with_commits.commit_ids[-1]

    assert refs.create_branch("feature", head) == 'refs/heads/feature'
    assert refs.read_ref('refs/heads/feature') == head


def test_create_unborn_branch(repo):
    """Test creating a branch without a commit."""
    repo.refs.create_branch("empty")
    assert (repo.heads_dir / 'empty').read_text() == ''
    with pytest.raises(UnbornBranch):
        repo.refs.resolve_ref('refs/heads/empty')


def test_create_branch_already_exists(repo):
    """Test creating a branch that already exists."""
    with pytest.raises(InvalidArgument):
        repo.refs.create_branch("main")


def test_set_head_to_branch(repo_with_commits):
    """Test attaching HEAD to another branch."""
    refs = repo_with_commits.refs
    refs.create_branch("feature", repo_with_commits.commit_ids[0])
    refs.set_head('refs/heads/feature')

    assert refs.get_current_branch() == 'feature'
    assert refs.resolve_head() == repo_with_commits.commit_ids[0]


def test_set_head_missing_branch(repo):
    """Test HEAD cannot be attached to a branch that does not exist."""
    with pytest.raises(NotFound):
        repo.refs.set_head('refs/heads/ghost')


def test_delete_ref(repo_with_commits):
    """Test deleting a branch."""
    refs = repo_with_commits.refs
    refs.create_branch("feature", repo_with_commits.commit_ids[0])
    refs.delete_ref('refs/heads/feature')
    assert not refs.ref_exists('refs/heads/feature')

    with pytest.raises(NotFound):
        refs.delete_ref('refs/heads/feature')


def test_delete_current_branch(repo):
    """Test the branch HEAD is attached to cannot be deleted."""
    with pytest.raises(InvalidArgument):
        repo.refs.delete_ref('refs/heads/main')


def test_list_branches(repo_with_commits):
    """Test listing branches with their commits."""
    refs = repo_with_commits.refs
    refs.create_branch("feature", repo_with_commits.commit_ids[0])
    refs.create_branch("later")

    assert refs.list_branches() == [
        ('feature', repo_with_commits.commit_ids[0]),
        ('later', None),
        ('main', repo_with_commits.commit_ids[-1]),
    ]
    assert refs.list_refs('refs/heads/f') == ['refs/heads/feature']


def test_recover_pending_update(repo_with_commits):
    """Test replaying a journaled write that never happened."""
    refs = repo_with_commits.refs
    first = repo_with_commits.commit_ids[0]
    refs.journal.begin('refs/heads/main', first, 'crash')

    recovered = refs.recover()
    assert [u.ref_name for u in recovered] == ['refs/heads/main']
    assert refs.resolve_head() == first
