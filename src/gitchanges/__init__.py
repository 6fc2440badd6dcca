"""
Top-level package for gitchanges.

This package exposes the main CLI entry point via the
``gitchanges.cli`` module. The version is read from the installed
distribution metadata.
"""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("gitchanges")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
