#!/usr/bin/env python
"""
Thin wrapper script to invoke the gitchanges CLI.

Running ``python run_gitchanges.py`` is equivalent to running the
``gitchanges`` console script installed via ``pyproject.toml``.
"""

from gitchanges.cli import main


if __name__ == "__main__":
    main(prog_name="gitchanges")
