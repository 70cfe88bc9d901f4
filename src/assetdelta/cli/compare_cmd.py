"""assetdelta compare — diff two build output directories.

Usage:
    assetdelta compare base/dist head/dist                 # Markdown to stdout
    assetdelta compare base/dist head/dist --rich          # Terminal table
    assetdelta compare base/dist head/dist --format json   # JSON to stdout
"""
from __future__ import annotations

from pathlib import Path

import click

from ..config import load_config
from ..errors import AssetDeltaError
from ..pipeline import compare_directories
from ..render import build_output_text, print_rich_report, report_json


@click.command("compare")
@click.argument("before_dir", type=click.Path(file_okay=False))
@click.argument("after_dir", type=click.Path(file_okay=False))
@click.option("--format", "fmt", type=click.Choice(["markdown", "json"]), default="markdown",
              help="Output format (default: markdown)")
@click.option("--rich", "use_rich", is_flag=True, help="Print a Rich table instead of text")
@click.option("--show-unchanged", is_flag=True, help="Include unchanged assets")
@click.option("--recognizer", "recognizers", multiple=True,
              help="Fingerprint recognizer to apply (repeatable, overrides config)")
@click.option("--collision-policy", type=click.Choice(["sum", "suffix"]), default=None,
              help="How to handle several files with the same logical key")
@click.option("--no-gzip", is_flag=True, help="Skip gzip size measurement")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Config file (replaces ~/.assetdelta/config.json)")
@click.option("--output", "-o", default=None, type=click.Path(),
              help="Write to file instead of stdout")
def compare_command(
    before_dir: str,
    after_dir: str,
    fmt: str,
    use_rich: bool,
    show_unchanged: bool,
    recognizers: tuple[str, ...],
    collision_policy: str | None,
    no_gzip: bool,
    config_path: str | None,
    output: str | None,
) -> None:
    """Compare asset sizes in BEFORE_DIR and AFTER_DIR.

    Both directories are build outputs; nothing is built or checked out.

    \b
    Examples:
        assetdelta compare base/dist head/dist
        assetdelta compare base/dist head/dist --recognizer vite
    """
    try:
        config = load_config(Path(config_path) if config_path else None, workspace=Path.cwd())
        fp = config["fingerprint"]
        if recognizers:
            fp["recognizers"] = list(recognizers)
        if collision_policy:
            fp["collision_policy"] = collision_policy
        if no_gzip:
            config["gzip"] = False
        report = compare_directories(Path(before_dir), Path(after_dir), config)
    except AssetDeltaError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    show_unchanged = show_unchanged or config["report"].get("show_unchanged", False)

    if use_rich and not output:
        print_rich_report(report, show_unchanged=show_unchanged)
        return

    if fmt == "json":
        text = report_json(report)
    else:
        text = build_output_text(report, show_unchanged=show_unchanged, title=config["report"]["title"])

    if output:
        Path(output).write_text(text + "\n")
        click.echo(f"Report written to {output}")
    else:
        click.echo(text)


__all__ = ["compare_command"]
