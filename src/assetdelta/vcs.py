"""Git helpers for getting the base revision onto disk.

Two modes:
    checkout(sha, repo)            switch the working tree in place
    isolated_worktree(sha, repo)   check the revision out into a temporary
                                   worktree, leaving the working tree alone
"""
from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from .errors import CheckoutFailure

logger = logging.getLogger(__name__)


def _git(args: list[str], cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
    )


def repo_root(directory: Path) -> Path:
    """Top level of the git repository containing `directory`."""
    result = _git(["rev-parse", "--show-toplevel"], Path(directory))
    if result.returncode != 0:
        raise CheckoutFailure("HEAD", directory, "not a git repository")
    return Path(result.stdout.strip())


def checkout(revision: str, directory: Path) -> None:
    """`git checkout <revision>` in place. Raises CheckoutFailure."""
    logger.info("Checking out %s in %s", revision, directory)
    try:
        result = _git(["checkout", "--quiet", revision], Path(directory))
    except FileNotFoundError as exc:
        raise CheckoutFailure(revision, directory, "git executable not found") from exc
    if result.returncode != 0:
        raise CheckoutFailure(revision, directory, result.stderr.strip())


@contextmanager
def isolated_worktree(revision: str, directory: Path) -> Iterator[Path]:
    """Yield the path matching `directory` inside a detached worktree at `revision`.

    `directory` may be a subdirectory of the repository (a monorepo package);
    the yielded path points at the same subdirectory in the worktree. The
    worktree is removed on exit.
    """
    directory = Path(directory).resolve()
    try:
        root = repo_root(directory)
    except FileNotFoundError as exc:
        raise CheckoutFailure(revision, directory, "git executable not found") from exc
    relative = directory.relative_to(root.resolve())

    parent = Path(tempfile.mkdtemp(prefix="assetdelta-"))
    worktree = parent / "base"
    logger.info("Adding worktree for %s at %s", revision, worktree)
    result = _git(["worktree", "add", "--detach", "--force", str(worktree), revision], root)
    if result.returncode != 0:
        shutil.rmtree(parent, ignore_errors=True)
        raise CheckoutFailure(revision, directory, result.stderr.strip())

    try:
        yield worktree / relative
    finally:
        removed = _git(["worktree", "remove", "--force", str(worktree)], root)
        if removed.returncode != 0:
            logger.warning("Could not remove worktree %s: %s", worktree, removed.stderr.strip())
        shutil.rmtree(parent, ignore_errors=True)


def link_shared_paths(source: Path, target: Path, names: Iterable[str]) -> list[Path]:
    """Symlink untracked directories such as node_modules from `source` into `target`.

    Names missing from `source` or already present in `target` are skipped.
    Returns the links created.
    """
    linked = []
    for name in names:
        origin = Path(source).resolve() / name
        link = Path(target) / name
        if not origin.exists() or link.exists() or link.is_symlink():
            continue
        try:
            link.symlink_to(origin, target_is_directory=origin.is_dir())
        except OSError as exc:
            logger.warning("Could not link %s into %s: %s", origin, target, exc)
            continue
        logger.info("Linked %s into %s", origin, target)
        linked.append(link)
    return linked


__all__ = ["checkout", "isolated_worktree", "link_shared_paths", "repo_root"]
