"""
Pytest configuration and shared fixtures.

Provides temporary git repositories (with and without a bare remote) and
isolates configuration from the developer's environment.
"""

import os
import subprocess
from pathlib import Path
from typing import Callable

import pytest

from pubsync.core.config import clear_cache

GitRunner = Callable[..., str]

PUBSYNC_ENV_VARS = (
    "PUBSYNC_CONTENT_SUFFIX",
    "PUBSYNC_RENAME_POLICY",
    "PUBSYNC_REMOTE",
    "PUBSYNC_BRANCH",
    "PUBSYNC_ALL_BRANCHES",
    "PUBSYNC_GIT_TIMEOUT",
)

# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user config, PUBSYNC_* variables and the config cache out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in PUBSYNC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()
    # .env loading writes to os.environ directly
    for name in PUBSYNC_ENV_VARS:
        os.environ.pop(name, None)


# ==============================================================================
# Git Fixtures
# ==============================================================================


@pytest.fixture
def git() -> GitRunner:
    """Run a git command in a directory and return its stdout."""

    def run(cwd: Path, *args: str) -> str:
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    return run


@pytest.fixture
def git_repo(tmp_path: Path, git: GitRunner) -> Path:
    """Create a temporary git repository on branch main."""
    repo = tmp_path / "repo"
    repo.mkdir()

    git(repo, "init")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")

    return repo


@pytest.fixture
def content_repo(git_repo: Path, git: GitRunner) -> Path:
    """A repository with an initial commit of content and non-content files."""
    (git_repo / "posts").mkdir()
    (git_repo / "img").mkdir()
    (git_repo / "posts" / "a.org").write_text("* A\n")
    (git_repo / "posts" / "b.org").write_text("* B\n")
    (git_repo / "posts" / "old-name.org").write_text("* Renamed later\n" * 20)
    (git_repo / "README.md").write_text("# Site\n")

    git(git_repo, "add", ".")
    git(git_repo, "commit", "-m", "Initial content")

    return git_repo


@pytest.fixture
def bare_remote(tmp_path: Path, git: GitRunner) -> Path:
    """An empty bare repository to push to."""
    remote = tmp_path / "remote.git"
    remote.mkdir()
    git(remote, "init", "--bare")
    return remote


@pytest.fixture
def repo_with_remote(content_repo: Path, bare_remote: Path, git: GitRunner) -> Path:
    """Content repository with `origin` pointing at a bare remote."""
    git(content_repo, "remote", "add", "origin", str(bare_remote))
    return content_repo
