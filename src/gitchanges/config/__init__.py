"""
Configuration loading for gitchanges.

Provides a simple loader for the optional ``.gitchanges.json`` file located
in the repository root. See :mod:`gitchanges.config.loader` for
implementation details.
"""

from .loader import ConfigError, load_config  # noqa: F401
