"""Run orchestration: collect both builds, diff them, render, publish.

    head  = collect(workspace)                      # PR build
    base  = collect(worktree at PR base sha)        # or in-place checkout
    text  = build_output_text(diff_sizes(normalise(base), normalise(head)))
    publish(text)  # falls back to stdout on PublishFailure
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from . import vcs
from .diff import DiffReport, diff_sizes
from .errors import AssetDeltaError, PublishFailure
from .fingerprint import DEFAULT_RECOGNIZERS, FingerprintNormalizer, recognizers_from_names
from .github import DEFAULT_API_URL, FORK_HINT, ActionContext, GitHubClient, PullRequest, get_pull_request
from .inventory import AssetRecord, collect, run_build
from .render import build_output_text

logger = logging.getLogger(__name__)

Collector = Callable[[Path, bool, dict], "list[AssetRecord]"]
Publisher = Callable[[str], None]


@dataclass(frozen=True)
class RunResult:
    report: DiffReport
    text: str
    published: bool
    pull_request: Optional[PullRequest] = None


def normaliser_from_config(config: dict) -> FingerprintNormalizer:
    fp = config.get("fingerprint", {})
    return FingerprintNormalizer(
        recognizers=recognizers_from_names(fp.get("recognizers", DEFAULT_RECOGNIZERS)),
        marker=fp.get("marker", ""),
        collision_policy=fp.get("collision_policy", "sum"),
    )


def collect_from_config(directory: Path, should_build: bool, config: dict) -> list[AssetRecord]:
    return collect(
        directory,
        should_build,
        build_command=config["build_command"],
        output_dir=config["output_dir"],
        include=config.get("include", []),
        exclude=config.get("exclude", []),
        measure_gzip=config.get("gzip", True),
    )


def compare_directories(before_dir: Path, after_dir: Path, config: dict) -> DiffReport:
    """Diff two output directories that are already built."""
    local = dict(config, output_dir=".")
    before = collect_from_config(Path(before_dir), False, local)
    after = collect_from_config(Path(after_dir), False, local)
    normaliser = normaliser_from_config(config)
    return diff_sizes(normaliser.normalise(before), normaliser.normalise(after))


def diff_assets(
    workspace: Path,
    base_sha: str,
    config: dict,
    collector: Collector = collect_from_config,
) -> DiffReport:
    """Build/collect the PR head in `workspace` and the base at `base_sha`, then diff."""
    workspace = Path(workspace)
    head_assets = collector(workspace, not config.get("use_pr_artifacts", False), config)

    if config.get("isolate", True):
        with vcs.isolated_worktree(base_sha, workspace) as base_dir:
            setup_command = config.get("setup_command")
            if setup_command:
                run_build(base_dir, setup_command)
            else:
                vcs.link_shared_paths(workspace, base_dir, config.get("shared_paths", []))
            base_assets = collector(base_dir, True, config)
    else:
        # The base build overwrites the head build's output, so head must be
        # fully collected before this point.
        vcs.checkout(base_sha, workspace)
        base_assets = collector(workspace, True, config)

    normaliser = normaliser_from_config(config)
    return diff_sizes(normaliser.normalise(base_assets), normaliser.normalise(head_assets))


def publish_report(text: str, publish: Optional[Publisher], echo: Callable[[str], None] = print) -> bool:
    """Deliver `text`; on PublishFailure (or no publisher) write it via `echo` instead."""
    if publish is None:
        echo(text)
        return False
    try:
        publish(text)
    except PublishFailure as e:
        logger.error("Publishing the report failed: %s", e)
        echo(FORK_HINT)
        echo(
            "Copy and paste the following into a comment yourself if you want to still show the diff:\n\n"
            + text
        )
        return False
    return True


def write_step_summary(text: str, environ: Optional[dict] = None) -> None:
    env = os.environ if environ is None else environ
    summary_path = env.get("GITHUB_STEP_SUMMARY")
    if not summary_path:
        return
    try:
        with open(summary_path, "a") as f:
            f.write(text + "\n")
    except OSError as e:
        logger.warning("Could not write step summary %s: %s", summary_path, e)


def run_pull_request(
    workspace: Path,
    config: dict,
    *,
    dry_run: bool = False,
    echo: Callable[[str], None] = print,
    context: Optional[ActionContext] = None,
    client: Optional[GitHubClient] = None,
    collector: Collector = collect_from_config,
) -> RunResult:
    """The full CI run for one pull request."""
    context = context or ActionContext.from_env()
    if client is None:
        gh = config.get("github", {})
        token = gh.get("token")
        if token:
            client = GitHubClient(token, context.owner, context.repo, gh.get("api_url") or DEFAULT_API_URL)
        elif not dry_run:
            raise AssetDeltaError("No GitHub token configured (set GITHUB_TOKEN or pass --token)")

    pull_request = get_pull_request(context, client)
    logger.info("Comparing PR #%d against base %s", pull_request.number, pull_request.base_sha)

    report = diff_assets(workspace, pull_request.base_sha, config, collector=collector)
    report_cfg = config.get("report", {})
    text = build_output_text(
        report,
        show_unchanged=report_cfg.get("show_unchanged", False),
        title=report_cfg.get("title", "Asset size report"),
    )

    if report_cfg.get("step_summary", True):
        write_step_summary(text)

    publisher = None
    if not dry_run and client is not None:
        publisher = lambda body: client.create_comment(pull_request.number, body)  # noqa: E731
    published = publish_report(text, publisher, echo)
    return RunResult(report=report, text=text, published=published, pull_request=pull_request)


__all__ = [
    "RunResult",
    "collect_from_config",
    "compare_directories",
    "diff_assets",
    "normaliser_from_config",
    "publish_report",
    "run_pull_request",
    "write_step_summary",
]
