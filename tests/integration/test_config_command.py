"""Integration tests for config command."""

import pytest
from click.testing import CliRunner

from guardian.cli.main import cli


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def initialized_repo(runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner.invoke(cli, ['init'])
    return tmp_path


def test_set_and_get(runner, initialized_repo):
    """Test setting and reading a repository value."""
    result = runner.invoke(cli, ['config', 'set', 'user.name', 'Jane Doe'])
    assert result.exit_code == 0
    assert 'Set repository config: user.name = Jane Doe' in result.output

    result = runner.invoke(cli, ['config', 'get', 'user.name'])
    assert result.output.strip() == 'Jane Doe'


def test_get_missing(runner, initialized_repo):
    """Test reading a key that is not set."""
    result = runner.invoke(cli, ['config', 'get', 'user.email'])
    assert result.exit_code == 1
    assert 'Config key not found' in result.output


def test_bare_key_goes_to_core(runner, initialized_repo):
    """Test keys without a section are in [core]."""
    runner.invoke(cli, ['config', 'set', 'compression', 'true'])
    result = runner.invoke(cli, ['config', 'get', 'core.compression'])
    assert result.output.strip() == 'true'


def test_global_config(runner, initialized_repo, isolated_home):
    """Test --global writes ~/.guardianconfig."""
    result = runner.invoke(cli, ['config', 'set', '--global', 'user.email', 'g@example.com'])
    assert result.exit_code == 0
    assert 'g@example.com' in (isolated_home / '.guardianconfig').read_text()

    result = runner.invoke(cli, ['config', 'get', 'user.email'])
    assert result.output.strip() == 'g@example.com'


def test_set_outside_repository(runner, tmp_path, monkeypatch):
    """Test repository config needs a repository."""
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli, ['config', 'set', 'user.name', 'X'])
    assert result.exit_code == 1


def test_unset(runner, initialized_repo):
    """Test removing a value."""
    runner.invoke(cli, ['config', 'set', 'user.name', 'Jane'])
    result = runner.invoke(cli, ['config', 'unset', 'user.name'])
    assert 'Unset user.name' in result.output

    result = runner.invoke(cli, ['config', 'unset', 'user.name'])
    assert 'was not set' in result.output


def test_list(runner, initialized_repo):
    """Test listing values."""
    runner.invoke(cli, ['config', 'set', 'user.name', 'Jane'])
    result = runner.invoke(cli, ['config', 'list'])
    assert result.exit_code == 0
    assert 'core.hashalgorithm=sha256' in result.output
    assert 'user.name=Jane' in result.output
