"""CLI package for ZoteroReader.

Exposes the click group and the console-script entry point.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "cli", "main"]

from ZoteroReader.cli.runner import CommandRunner
from ZoteroReader.cli.ui import cli


def main() -> None:
    """Run ZoteroReader CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
