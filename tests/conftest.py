import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import pytest


class RepoBuilder:
    """Create commits and tags in a throwaway Git repository."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._env = dict(os.environ)
        # Keep user-level settings (signing, hooks, templates) out of the way.
        self._env["GIT_CONFIG_GLOBAL"] = os.devnull
        self._env["GIT_CONFIG_NOSYSTEM"] = "1"

    def git(self, *args: str, date: Optional[str] = None) -> str:
        env = dict(self._env)
        if date is not None:
            env["GIT_AUTHOR_DATE"] = f"{date}T12:00:00+00:00"
            env["GIT_COMMITTER_DATE"] = f"{date}T12:00:00+00:00"
        result = subprocess.run(
            ["git", *args],
            cwd=self.root,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=True,
        )
        return result.stdout

    def commit(self, message: str, date: str) -> None:
        self.git("commit", "--allow-empty", "-q", "-m", message, date=date)

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", f"Release {name}")
        else:
            self.git("tag", name)


@pytest.fixture
def git_repo(tmp_path):
    """An initialised, empty Git repository named ``demo-project``."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    root = tmp_path / "demo-project"
    root.mkdir()
    repo = RepoBuilder(root)
    repo.git("init", "-q")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "user.email", "test@example.com")
    return repo
