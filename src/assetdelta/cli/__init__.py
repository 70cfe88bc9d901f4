"""assetdelta CLI - built-asset size deltas for pull requests.

Commands:
    compare - Diff two already-built output directories
    pr      - CI run: build head and base, diff, comment on the pull request
"""
from __future__ import annotations

import logging

import click

from .compare_cmd import compare_command
from .pr_cmd import pr_command

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@click.group()
@click.version_option(version="0.1.0", prog_name="assetdelta")
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for per-file detail")
def cli(verbose: int) -> None:
    """assetdelta — asset size deltas between a pull request and its base

    \b
    Quick start:
      assetdelta compare base/dist head/dist    Diff two builds
      assetdelta pr .                           CI: build, diff, comment
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=LOG_FORMAT)


cli.add_command(compare_command, name="compare")
cli.add_command(pr_command, name="pr")


def main() -> None:
    """Entry point for the assetdelta command."""
    cli()


__all__ = ["cli", "main"]
