"""Unit tests for the ref update journal."""

import pytest
from guardian.core.journal import Journal, PendingRefUpdate


@pytest.fixture
def journal(tmp_path):
    return Journal(tmp_path / 'journal.log')


def test_empty_journal(journal):
    """Test a missing journal has nothing pending."""
    assert journal.pending() == []


def test_begin_without_commit_is_pending(journal):
    """Test an unfinished update is reported."""
    journal.begin('refs/heads/main', 'a' * 64, 'snapshot')
    assert journal.pending() == [PendingRefUpdate('refs/heads/main', 'a' * 64, 'snapshot')]


def test_commit_resolves_pending(journal):
    """Test a committed update is no longer pending."""
    journal.begin('refs/heads/main', 'a' * 64)
    journal.commit('refs/heads/main')
    assert journal.pending() == []


def test_latest_begin_wins(journal):
    """Test only the last value per ref is replayed."""
    journal.begin('refs/heads/main', 'a' * 64)
    journal.begin('refs/heads/main', 'b' * 64)
    assert [p.new_value for p in journal.pending()] == ['b' * 64]


def test_transaction_clears_journal(journal):
    """Test a clean transaction leaves no journal behind."""
    with journal.transaction('refs/heads/main', 'a' * 64):
        assert journal.pending()[0].ref_name == 'refs/heads/main'
    assert not journal.path.exists()


def test_transaction_failure_stays_pending(journal):
    """Test a failed write stays in the journal for replay."""
    with pytest.raises(RuntimeError):
        with journal.transaction('refs/heads/main', 'a' * 64):
            raise RuntimeError("disk full")
    assert [p.ref_name for p in journal.pending()] == ['refs/heads/main']


def test_torn_line_ignored(journal):
    """Test a partially written line does not break recovery."""
    journal.begin('refs/heads/main', 'a' * 64)
    with open(journal.path, 'a') as f:
        f.write('{"op": "comm')
    assert len(journal.pending()) == 1


def test_recover(journal):
    """Test recover applies pending updates and clears the journal."""
    journal.begin('refs/heads/main', 'a' * 64)
    journal.begin('HEAD', 'ref: refs/heads/main')
    journal.commit('HEAD')

    applied = []
    recovered = journal.recover(applied.append)

    assert recovered == applied
    assert [(p.ref_name, p.new_value) for p in applied] == [('refs/heads/main', 'a' * 64)]
    assert not journal.path.exists()
