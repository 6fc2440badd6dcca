"""
Changelog rendering.

The change groups produced by :func:`~gitchanges.changelog.builder.build_change_groups`
are rendered into Markdown through a Jinja2 template. Groups are emitted
newest first, with one section per label inside each group.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from jinja2 import Environment, StrictUndefined

from gitchanges.changelog.builder import Repository, build_change_groups
from gitchanges.changelog.models import ChangeGroup, GenerateConfig


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


SINGLE_PROJECT_TEMPLATE = """\
# {{ project_name }} Changelog
All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/).
{% if filter_declaration %}

{{ filter_declaration }}
{% endif %}
{% for group in change_groups %}

## [{{ group.tag }}]{{ " - " ~ group.date if group.date else "" }}

{% for label, changes in group.labeled_changes.items() %}
{% if label %}
### {{ label }}

{% endif %}
{% for change in changes %}
- {{ change.description }}
{% endfor %}
{% if not loop.last %}

{% endif %}
{% endfor %}
{% endfor %}
"""


def _environment() -> Environment:
    return Environment(
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


def render_changelog(
    project_name: str,
    change_groups: List[ChangeGroup],
    filter_declaration: Optional[str] = None,
) -> str:
    """Render change groups into a Markdown changelog.

    Parameters
    ----------
    project_name : str
        Display name used in the document title.
    change_groups : List[ChangeGroup]
        Groups in output order (newest first).
    filter_declaration : Optional[str]
        Sentence describing an active since/until filter, if any.

    Returns
    -------
    str
        The rendered document, ending in a single newline.
    """
    template = _environment().from_string(SINGLE_PROJECT_TEMPLATE)
    rendered = template.render(
        project_name=project_name,
        change_groups=change_groups,
        filter_declaration=filter_declaration or "",
    )
    return rendered.rstrip("\n") + "\n"


class ChangelogGenerator:
    """Builds and renders the changelog for a single repository."""

    def generate(self, repository: Repository, config: GenerateConfig) -> str:
        """Return the rendered changelog for ``repository``.

        Raises
        ------
        PatternError
            If a configured pattern is invalid.
        TraversalError
            If reading the repository history fails.
        """
        change_groups = build_change_groups(repository, config)
        logger.debug("Built %d change group(s)", len(change_groups))
        return render_changelog(
            repository.name(),
            change_groups,
            config.filter_declaration(),
        )
