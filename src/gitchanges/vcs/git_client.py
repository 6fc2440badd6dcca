"""
Git history source for gitchanges.

This module reads tags and commit history by shelling out to the ``git``
executable. All subprocess calls go through :meth:`GitClient._run` or
:meth:`GitClient._stream` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import re
import subprocess
from contextlib import closing
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from gitchanges.changelog.builder import STOP_TRAVERSAL, CommitCallback
from gitchanges.changelog.models import Commit


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

LOG_FORMAT = "--format=%H%x1f%cs%x1f%B%x1e"
# Signature verification output would otherwise be mixed into each record.
LOG_ARGS = ["log", "--no-show-signature", LOG_FORMAT]
TAG_FORMAT = "--format=%(refname:lstrip=2)%1f%(objectname)%1f%(*objectname)"


_WORD = re.compile(r"[\w'.]+")


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


def title_case(text: str) -> str:
    """Upper case the first letter of each word and lower case the rest."""
    return _WORD.sub(lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), text)


class GitClient:
    """Read-only client for the history of a Git repository."""

    def __init__(self, repo_root: Path, name: Optional[str] = None) -> None:
        self.repo_root = repo_root
        self._name = name

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_repo(path: Path) -> bool:
        """Return True if the given path is the root of a Git repository."""
        return (path / ".git").exists()

    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        A path ending in ``.git`` is taken to be the metadata directory and
        its parent is searched instead. Walk upwards until a ``.git`` entry
        is found or the filesystem root is reached.
        """
        current = start.resolve()
        if current.name == ".git":
            current = current.parent
        while True:
            if GitClient.is_repo(current):
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is
            True, or if the ``git`` executable cannot be found.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError(f"Git executable not found: {e}") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    def _stream(self, args: List[str], separator: str) -> Iterator[str]:
        """Run a Git command and yield its output split on ``separator``.

        Output is read as it is produced. If the caller stops iterating
        (closing the generator), the Git process is killed so that no more
        output is computed.

        Raises
        ------
        GitError
            If the command exits with a non-zero status after its output was
            read completely, or if the ``git`` executable cannot be found.
        """
        full_cmd = ["git"] + args
        logger.debug("Streaming Git command: %s", " ".join(full_cmd))
        try:
            proc = subprocess.Popen(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError(f"Git executable not found: {e}") from e

        finished = False
        try:
            pending = ""
            for line in proc.stdout:
                pending += line
                if separator not in pending:
                    continue
                *records, pending = pending.split(separator)
                for record in records:
                    yield record
            if pending.strip():
                yield pending
            finished = True
        finally:
            if not finished:
                logger.debug("Stopping Git command early: %s", " ".join(full_cmd))
                proc.kill()
            proc.stdout.close()
            stderr = proc.stderr.read()
            proc.stderr.close()
            returncode = proc.wait()

        if returncode != 0:
            logger.error("Git command failed: %s\nSTDERR: %s", " ".join(full_cmd), stderr)
            raise GitError(stderr.strip() or f"git exited with status {returncode}")

    # ------------------------------------------------------------------
    # Repository metadata
    # ------------------------------------------------------------------
    def name(self) -> str:
        """Project display name.

        Falls back to the repository directory name in title case when no
        name was configured. Only the first letter of each word is upper
        cased; hyphens and spaces separate words, apostrophes, dots and
        digits do not (``bob's-tool`` -> ``Bob's-Tool``, ``v2app`` -> ``V2app``).
        """
        if self._name:
            return self._name
        return title_case(self.repo_root.name)

    def has_commits(self) -> bool:
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.returncode == 0

    def build_tag_index(self) -> Dict[str, str]:
        """Map each tagged commit hash to the name of the tag pointing at it.

        Annotated tags are peeled to the commit they point at; for
        lightweight tags the reference hash already is the commit hash.
        When several tags point at one commit, the last one listed wins.
        ``for-each-ref`` lists tags sorted by name.

        Raises
        ------
        GitError
            If the tags cannot be listed.
        """
        result = self._run(["for-each-ref", TAG_FORMAT, "refs/tags"], check=True)
        index: Dict[str, str] = {}
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            parts = line.split(FIELD_SEP)
            if len(parts) != 3:
                logger.warning("Ignoring unexpected tag line: %r", line)
                continue
            tag_name, object_hash, peeled_hash = parts
            commit_hash = peeled_hash or object_hash
            if commit_hash in index:
                logger.debug(
                    "Tags %s and %s point at %s; using %s",
                    index[commit_hash],
                    tag_name,
                    commit_hash,
                    tag_name,
                )
            index[commit_hash] = tag_name
        logger.debug("Indexed %d tagged commit(s)", len(index))
        return index

    def iter_commits(self, tag_index: Optional[Dict[str, str]] = None) -> Iterator[Commit]:
        """Yield the commits reachable from HEAD, newest first.

        An empty repository yields nothing. The log is read lazily; closing
        the iterator stops ``git log``.
        """
        if not self.has_commits():
            logger.debug("Repository at %s has no commits", self.repo_root)
            return
        tag_index = tag_index or {}
        with closing(self._stream(LOG_ARGS, RECORD_SEP)) as records:
            for record in records:
                record = record.lstrip("\n")
                if not record:
                    continue
                try:
                    commit_hash, date, message = record.split(FIELD_SEP, 2)
                except ValueError as e:
                    raise GitError(f"Unexpected git log record: {record!r}") from e
                yield Commit(
                    message=message.rstrip("\n"),
                    date=date,
                    tag=tag_index.get(commit_hash),
                )

    def traverse_history(self, callback: CommitCallback) -> None:
        """Deliver each commit to ``callback``, newest first.

        The tag index is built once before the first commit is delivered.
        As soon as ``callback`` returns
        :data:`~gitchanges.changelog.builder.STOP_TRAVERSAL` the ``git log``
        process is stopped and older history is not read. Exceptions raised
        by ``callback`` propagate unchanged.

        Raises
        ------
        GitError
            If the tags or the history cannot be read.
        """
        tag_index = self.build_tag_index()
        with closing(self.iter_commits(tag_index)) as commits:
            for commit in commits:
                if callback(commit) is STOP_TRAVERSAL:
                    logger.debug("Traversal stopped by callback")
                    return
