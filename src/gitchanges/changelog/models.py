"""
Data models for changelog generation.

A :class:`Commit` is what the history source hands to the builder, a
:class:`ChangeGroup` is what the builder hands to the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

UNRELEASED_TAG = "Unreleased"


@dataclass(frozen=True)
class Commit:
    """A single commit as streamed from the repository.

    Attributes
    ----------
    message : str
        Full commit message. The first line is the human readable description.
    date : str
        Committer date formatted as ``YYYY-MM-DD``.
    tag : Optional[str]
        Name of the tag pointing exactly at this commit, if any.
    """

    message: str
    date: str
    tag: Optional[str] = None


@dataclass(frozen=True)
class Change:
    description: str

    @classmethod
    def from_message(cls, message: str) -> "Change":
        """Build a change from the first line of a commit message."""
        return cls(description=message.split("\n")[0])


@dataclass
class ChangeGroup:
    """All changes between two tag boundaries.

    ``labeled_changes`` maps a label to its changes; dict insertion order is
    the order in which labels were first seen.
    """

    tag: str = UNRELEASED_TAG
    date: Optional[str] = None
    labeled_changes: Dict[str, List[Change]] = field(default_factory=dict)

    def add(self, label: str, change: Change) -> None:
        self.labeled_changes.setdefault(label, []).append(change)

    def is_empty(self) -> bool:
        return not self.labeled_changes


@dataclass(frozen=True)
class GenerateConfig:
    """Filtering and grouping options for a single changelog run.

    Empty strings and ``None`` both mean "not set".
    """

    since_tag: Optional[str] = None
    until_tag: Optional[str] = None
    group_by_pattern: Optional[str] = None
    skip_pattern: Optional[str] = None

    @property
    def is_filtered(self) -> bool:
        return bool(self.since_tag or self.until_tag)

    def filter_declaration(self) -> str:
        """Describe the effective tag range in prose, or ``""`` if unfiltered."""
        if not self.is_filtered:
            return ""
        since_text = self.since_tag or "earliest"
        until_text = self.until_tag or "latest"
        return f"Changes have been filtered from {since_text} to {until_text}."
