"""assetdelta pr — size report for the current pull request.

Meant to run inside GitHub Actions. Builds the PR head, builds the PR base
(in a separate worktree unless --in-place), and comments the diff on the PR.
If commenting fails (e.g. on forks) the report is printed instead.

Usage:
    assetdelta pr .
    assetdelta pr packages/web --use-pr-artifacts
    assetdelta pr . --dry-run
"""
from __future__ import annotations

from pathlib import Path

import click

from ..config import load_config
from ..errors import AssetDeltaError
from ..pipeline import run_pull_request


@click.command("pr")
@click.argument("workspace", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--token", envvar="ASSETDELTA_TOKEN", default=None,
              help="GitHub token (default: $GITHUB_TOKEN)")
@click.option("--use-pr-artifacts", is_flag=True,
              help="Reuse the existing head build instead of building it")
@click.option("--in-place", is_flag=True, help="Check the base out over WORKSPACE instead of a worktree")
@click.option("--build-command", default=None, help="Build command (default: npm run build)")
@click.option("--output-dir", default=None, help="Build output directory relative to WORKSPACE")
@click.option("--dry-run", is_flag=True, help="Print the report instead of commenting")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Config file (replaces ~/.assetdelta/config.json)")
def pr_command(
    workspace: str,
    token: str | None,
    use_pr_artifacts: bool,
    in_place: bool,
    build_command: str | None,
    output_dir: str | None,
    dry_run: bool,
    config_path: str | None,
) -> None:
    """Diff built asset sizes against the PR base and comment the result.

    \b
    Examples:
        assetdelta pr .
        assetdelta pr . --build-command "yarn build" --output-dir build
    """
    ws = Path(workspace).resolve()
    try:
        config = load_config(Path(config_path) if config_path else None, workspace=ws)
        if token:
            config["github"]["token"] = token
        if use_pr_artifacts:
            config["use_pr_artifacts"] = True
        if in_place:
            config["isolate"] = False
        if build_command:
            config["build_command"] = build_command
        if output_dir:
            config["output_dir"] = output_dir

        run_pull_request(ws, config, dry_run=dry_run, echo=click.echo)
    except AssetDeltaError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


__all__ = ["pr_command"]
