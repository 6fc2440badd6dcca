"""
Command line interface for the gitchanges tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``gitchanges`` command. It locates the
repository, merges command line options with the optional configuration
file, builds the changelog and writes it out. Exit codes are listed
below.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from gitchanges import __version__
from gitchanges.changelog.builder import PatternError, TraversalError
from gitchanges.changelog.generator import ChangelogGenerator
from gitchanges.changelog.models import GenerateConfig
from gitchanges.config.loader import ConfigError, load_config
from gitchanges.vcs.git_client import GitClient, GitError

# Create a module-level logger. Attach a null handler and disable
# propagation to avoid logging errors when the root logger's stream is
# closed (such as during unit tests). When logging is configured by
# the CLI, root handlers will be added and messages will propagate.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_OUTPUT_EXISTS = 9

DEFAULT_OUTPUT_NAME = "CHANGELOG.md"
STDOUT_MARKER = "-"


# ---------------------------------------------------------------------------
# Status display utilities
# ---------------------------------------------------------------------------

def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=True)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def resolve_output_path(repo_root: Path, cli_output: Optional[str], config_output: Optional[str]) -> Optional[Path]:
    """Work out where the changelog goes.

    Returns ``None`` when the changelog should be written to stdout. A path
    from the configuration file is relative to the repository root; a path
    from the command line is relative to the working directory.
    """
    if cli_output:
        return None if cli_output == STDOUT_MARKER else Path(cli_output)
    if config_output:
        return None if config_output == STDOUT_MARKER else repo_root / config_output
    return repo_root / DEFAULT_OUTPUT_NAME


@click.command()
@click.option("--path", "path", default=".", show_default=True,
              type=click.Path(file_okay=False, path_type=Path),
              help="Path to the repository to generate a changelog for.")
@click.option("--name", help="Project name, if different from the repository directory name.")
@click.option("--since-tag", help="Only include changes made after this tag (exclusive).")
@click.option("--until-tag", help="Only include changes made at or before this tag (inclusive).")
@click.option("--group-by", help="Group changes by the first capture group of this regular expression.")
@click.option("--skip", help="Leave out commits whose message matches this regular expression.")
@click.option("--output", help="File to write the changelog to ('-' for stdout). Defaults to <repo>/CHANGELOG.md.")
@click.option("--force", is_flag=True, help="Overwrite the output file if it already exists.")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Configuration file. Defaults to <repo>/.gitchanges.json if present.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="gitchanges")
def main(
    path: Path,
    name: Optional[str],
    since_tag: Optional[str],
    until_tag: Optional[str],
    group_by: Optional[str],
    skip: Optional[str],
    output: Optional[str],
    force: bool,
    config_path: Optional[Path],
    verbose: bool,
) -> None:
    """Generate a changelog from a Git repository's tags and commit history."""
    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )

    ctx = click.get_current_context(silent=True)

    try:
        repo_root = GitClient.find_repo_root(path)
        if repo_root is None:
            print_error(f"No Git repository found at {path} or its parent directories.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        logger.debug("Repository root: %s", repo_root)

        try:
            config = load_config(repo_root, config_path)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        generate_config = GenerateConfig(
            since_tag=since_tag or config.get("since_tag"),
            until_tag=until_tag or config.get("until_tag"),
            group_by_pattern=group_by or config.get("group_by"),
            skip_pattern=skip or config.get("skip"),
        )
        output_path = resolve_output_path(repo_root, output, config.get("output"))

        if output_path is not None and output_path.exists() and not force:
            print_error(f"File {output_path} already exists; use --force to overwrite it.")
            raise click.exceptions.Exit(EXIT_OUTPUT_EXISTS)

        client = GitClient(repo_root, name=name or config.get("name"))
        try:
            changelog = ChangelogGenerator().generate(client, generate_config)
        except PatternError as exc:
            print_error(f"Invalid pattern: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        except TraversalError as exc:
            print_error(f"Failed to read repository history: {exc}")
            if isinstance(exc.__cause__, GitError):
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)
            raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

        if output_path is None:
            click.echo(changelog, nl=False)
        else:
            output_path.write_text(changelog, encoding="utf-8")
            print_success(f"Wrote changelog for {client.name()} to {output_path}")
            if generate_config.is_filtered:
                print_info(generate_config.filter_declaration(), indent=1)

        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        # Click uses its own Exit exception; re-raise to let Click handle it
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
