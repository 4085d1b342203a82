"""
Shared fixtures for gitconnector tests.

Repositories are created with the host git binary in temporary
directories; tests that need git are skipped when it is missing.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from gitconnector.config import ConnectorConfig
from gitconnector.connector import GitConnector
from gitconnector.domain.commit import CommitIdentity
from gitconnector.services import RepositoryService

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")

TEST_IDENTITY = CommitIdentity(name="Test User", email="test@example.com")


def run_git(cwd, *args) -> str:
    """Run git with a fixed identity; fail the test on error."""
    result = subprocess.run(
        ["git", "-c", "user.name=Test User", "-c", "user.email=test@example.com", "-C", str(cwd), *args],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str = None) -> str:
    """Write a file, commit it, return the new commit id."""
    path = Path(repo) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    run_git(repo, "add", "--", name)
    run_git(repo, "commit", "--quiet", "-m", message or f"Update {name}")
    return run_git(repo, "rev-parse", "HEAD")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user and system git/gitconnector configuration out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GITCONNECTOR_CONFIG", str(home / "missing-config.json"))
    for key in ("GITCONNECTOR_USERNAME", "GITCONNECTOR_PASSWORD", "GIT_DIR", "GIT_WORK_TREE",
                "GIT_COMMITTER_NAME", "GIT_COMMITTER_EMAIL", "GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL"):
        monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def git():
    """The run_git helper."""
    return run_git


@pytest.fixture
def remote_repo(tmp_path):
    """
    Bare repository with "a" on main and a branch "test-branch" that also
    has "b".
    """
    seed = tmp_path / "seed"
    seed.mkdir()
    run_git(seed, "init", "--quiet")
    run_git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    commit_file(seed, "a", "a\n", "Add a")
    run_git(seed, "checkout", "--quiet", "-b", "test-branch")
    commit_file(seed, "b", "b\n", "Add b")
    run_git(seed, "checkout", "--quiet", "main")

    remote = tmp_path / "remote.git"
    run_git(tmp_path, "clone", "--quiet", "--bare", str(seed), str(remote))
    return remote


@pytest.fixture
def work_dir(tmp_path, remote_repo):
    """A clone of remote_repo."""
    work = tmp_path / "work"
    run_git(tmp_path, "clone", "--quiet", str(remote_repo), str(work))
    return work


@pytest.fixture
def handle(work_dir):
    """Open handle on work_dir, closed after the test."""
    with RepositoryService().open(work_dir) as opened:
        yield opened


@pytest.fixture
def connector(tmp_path):
    """Connector whose configured directory is tmp_path/work."""
    config = ConnectorConfig(
        directory=str(tmp_path / "work"),
        identity=TEST_IDENTITY,
        lock_timeout=0,
    )
    return GitConnector(config)
