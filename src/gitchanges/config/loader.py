"""
Configuration loader for gitchanges.

Settings can be kept in a JSON file named ``.gitchanges.json`` in the
repository root so that the same filters are applied on every run. Values
given on the command line take precedence over the file.

If the configuration file is malformed or has values of the wrong type, a
:class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILENAME = ".gitchanges.json"

# All settings are optional strings.
KNOWN_KEYS = ("name", "since_tag", "until_tag", "group_by", "skip", "output")


class ConfigError(Exception):
    """Raised when the gitchanges configuration file is missing or invalid."""

    pass


def load_config(repo_root: Path, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the gitchanges configuration and return it.

    Args:
        repo_root: Repository root; ``.gitchanges.json`` is looked up here
                   when ``config_path`` is not given.
        config_path: Explicit configuration file. Unlike the default file,
                     it must exist.

    Returns:
        A dictionary holding the recognised keys that were present:
        - name (str): Project display name
        - since_tag (str): Exclusive lower tag boundary
        - until_tag (str): Inclusive upper tag boundary
        - group_by (str): Regular expression whose first group is the label
        - skip (str): Regular expression of commits to leave out
        - output (str): Output file path

    Raises:
        ConfigError: If an explicit file is missing, or the file is malformed
                     or invalid.
    """
    explicit = config_path is not None
    path = config_path if explicit else repo_root / CONFIG_FILENAME

    if not path.exists():
        if explicit:
            logger.error("Configuration file '%s' does not exist", path)
            raise ConfigError(f"Missing configuration file: {path}")
        logger.debug("No configuration file at %s; using defaults", path)
        return {}

    try:
        content = path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")

    unknown = sorted(key for key in data if key not in KNOWN_KEYS)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    config: Dict[str, Any] = {}
    for key in KNOWN_KEYS:
        if key not in data or data[key] is None:
            continue
        if not isinstance(data[key], str):
            raise ConfigError(f"'{key}' must be a string")
        config[key] = data[key]

    logger.debug("Loaded configuration from: %s", path)
    logger.debug("Configuration data: %s", config)
    return config
