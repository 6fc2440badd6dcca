"""
Changelog construction and rendering.

See :mod:`gitchanges.changelog.builder` for the grouping algorithm and
:mod:`gitchanges.changelog.generator` for rendering.
"""

from .builder import (  # noqa: F401
    STOP_TRAVERSAL,
    PatternError,
    TraversalError,
    build_change_groups,
)
from .generator import ChangelogGenerator, render_changelog  # noqa: F401
from .models import Change, ChangeGroup, Commit, GenerateConfig  # noqa: F401
