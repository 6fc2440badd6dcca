"""
Version control system (VCS) integrations.

This package contains the Git history source used to feed the changelog
builder. The client lists tags, walks the commit log and delivers each
commit to a callback.
"""

from .git_client import GitClient, GitError  # noqa: F401
