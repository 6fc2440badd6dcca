"""
Change group construction.

:func:`build_change_groups` walks a repository's history newest-first and
splits it into :class:`~gitchanges.changelog.models.ChangeGroup` objects at
every tag boundary. The walk is push-style: the repository calls back once
per commit, and the callback answers :data:`STOP_TRAVERSAL` once the
``since_tag`` boundary is reached so that older history is never read.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Callable, List, Optional, Pattern, Protocol

from gitchanges.changelog.models import Change, ChangeGroup, Commit, GenerateConfig


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_LABEL = "Misc"
SKIPPED_PLACEHOLDER = "[All changes in this group have been skipped]"


class _StopTraversal:
    """Type of the :data:`STOP_TRAVERSAL` sentinel."""

    def __repr__(self) -> str:
        return "STOP_TRAVERSAL"


STOP_TRAVERSAL = _StopTraversal()

CommitCallback = Callable[[Commit], Optional[_StopTraversal]]


class Repository(Protocol):
    """History source consumed by :func:`build_change_groups`."""

    def name(self) -> str:
        ...

    def traverse_history(self, callback: CommitCallback) -> None:
        ...


class PatternError(Exception):
    """Raised when a group-by or skip pattern is not a valid regular expression."""

    pass


class TraversalError(Exception):
    """Raised when the history source fails part way through a traversal."""

    pass


class TraversalState(enum.Enum):
    BEFORE_UNTIL = "before-until-boundary"
    RECORDING = "recording"


def _compile(kind: str, pattern: Optional[str]) -> Optional[Pattern[str]]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        logger.error("Invalid %s pattern %r: %s", kind, pattern, exc)
        raise PatternError(f"failed to compile {kind} pattern {pattern!r}: {exc}") from exc


class _GroupBuilder:
    """Accumulator for a single traversal; one instance per run."""

    def __init__(self, config: GenerateConfig) -> None:
        self.since_tag = config.since_tag or None
        self.until_tag = config.until_tag or None
        self.group_by = _compile("groupBy", config.group_by_pattern)
        self.skip = _compile("skip", config.skip_pattern)
        self.state = TraversalState.BEFORE_UNTIL if self.until_tag else TraversalState.RECORDING
        self.current = ChangeGroup()
        self.completed: List[ChangeGroup] = []

    def label_for(self, message: str) -> str:
        if self.group_by is None:
            return ""
        match = self.group_by.search(message)
        if match and self.group_by.groups >= 1 and match.group(1) is not None:
            return match.group(1)
        return DEFAULT_LABEL

    def __call__(self, commit: Commit) -> Optional[_StopTraversal]:
        if commit.tag is not None:
            if self.state is TraversalState.BEFORE_UNTIL and commit.tag == self.until_tag:
                self.state = TraversalState.RECORDING
            if commit.tag == self.since_tag:
                logger.debug("Reached since tag %s, stopping traversal", commit.tag)
                return STOP_TRAVERSAL
            if not self.current.is_empty():
                self.completed.append(self.current)
            self.current = ChangeGroup(tag=commit.tag, date=commit.date)

        if self.state is TraversalState.BEFORE_UNTIL and self.current.tag != self.until_tag:
            return None
        if self.skip is not None and self.skip.search(commit.message):
            return None
        self.current.add(self.label_for(commit.message), Change.from_message(commit.message))
        return None

    def finish(self) -> List[ChangeGroup]:
        if self.current.is_empty():
            self.current.add("", Change(description=SKIPPED_PLACEHOLDER))
        self.completed.append(self.current)
        return self.completed


def build_change_groups(repository: Repository, config: GenerateConfig) -> List[ChangeGroup]:
    """Split the repository history into change groups, newest first.

    Parameters
    ----------
    repository : Repository
        Source of the commit stream.
    config : GenerateConfig
        Range filtering and grouping options.

    Returns
    -------
    List[ChangeGroup]
        Groups in traversal order. The last group is never empty: if all of
        its commits were skipped it carries a single placeholder change.

    Raises
    ------
    PatternError
        If either pattern fails to compile. No history is read in that case.
    TraversalError
        If the repository fails during traversal. No partial result is
        returned.
    """
    builder = _GroupBuilder(config)
    try:
        repository.traverse_history(builder)
    except Exception as exc:
        logger.error("History traversal failed: %s", exc)
        raise TraversalError(f"failed during history traversal: {exc}") from exc
    return builder.finish()
