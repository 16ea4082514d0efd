"""Shared test fixtures for the repository installer.

Provides a throwaway git identity, a bare "upstream" repository built with
GitPython, and mock collaborators for the sync routine.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest
from git import Repo

from repo_installer.packages import PackageInstaller
from repo_installer.repository import GitClient


@pytest.fixture
def git_identity(monkeypatch):
    """Commit and stash need an identity; don't depend on the user's config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Committer")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "committer@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")


def commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    path = Path(repo.working_tree_dir) / name
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


class Upstream:
    """A seed working copy plus the bare repository it publishes to."""

    def __init__(self, root: Path):
        self.seed = Repo.init(root / "seed")
        commit_file(self.seed, "setup.py", "from setuptools import setup\nsetup(name='insights-core')\n", "initial")
        commit_file(self.seed, "module.py", "VALUE = 1\n", "add module")
        self.seed.git.branch("-M", "master")
        self.seed.git.branch("1.x")

        self.bare_path = root / "RedHatInsights" / "insights-core.git"
        self.seed.clone(str(self.bare_path), bare=True)
        self.seed.create_remote("origin", str(self.bare_path))

    @property
    def url(self) -> str:
        return str(self.bare_path)

    def publish(self, name: str, content: str, branch: str = "master") -> str:
        """Commit a change on ``branch`` and push it upstream."""
        self.seed.git.checkout(branch)
        sha = commit_file(self.seed, name, content, f"update {name}")
        self.seed.git.push("origin", branch)
        return sha


@pytest.fixture
def upstream(tmp_path, git_identity) -> Upstream:
    return Upstream(tmp_path / "upstream")


@pytest.fixture
def install_dir(tmp_path) -> Path:
    path = tmp_path / "install"
    path.mkdir()
    return path


@pytest.fixture
def collaborators():
    """Mock git client and installer attached to one parent to record call order."""
    manager = Mock()
    manager.git = Mock(spec=GitClient)
    manager.installer = Mock(spec=PackageInstaller)
    return manager
