"""Git integration tests (real git, temporary repositories)."""
from __future__ import annotations

import copy
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from assetdelta.config import DEFAULT_CONFIG
from assetdelta.diff import DeltaStatus
from assetdelta.errors import CheckoutFailure
from assetdelta.pipeline import diff_assets
from assetdelta.vcs import checkout, isolated_worktree, link_shared_paths

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

# Cleans dist/, then writes dist/app.<md5[:8]>.js with the contents of src.txt
BUILD_PY = """\
import hashlib, pathlib, shutil
src = pathlib.Path("src.txt").read_bytes()
out = pathlib.Path("dist")
shutil.rmtree(out, ignore_errors=True)
out.mkdir()
(out / f"app.{hashlib.md5(src).hexdigest()[:8]}.js").write_bytes(src)
"""


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet")
    (repo / ".gitignore").write_text("dist/\n")
    (repo / "build.py").write_text(BUILD_PY)
    (repo / "src.txt").write_text("x" * 100)
    git(repo, "add", ".")
    git(repo, "commit", "--quiet", "-m", "base")
    return repo


def _commit_head(repo: Path) -> str:
    base = git(repo, "rev-parse", "HEAD")
    (repo / "src.txt").write_text("x" * 160)
    git(repo, "commit", "--quiet", "-am", "head")
    return base


def test_isolated_worktree_leaves_working_tree_alone(repo: Path) -> None:
    base = _commit_head(repo)

    with isolated_worktree(base, repo) as wt:
        assert (wt / "src.txt").read_text() == "x" * 100
        assert (repo / "src.txt").read_text() == "x" * 160
        created = wt

    assert not created.exists()
    assert str(created) not in git(repo, "worktree", "list")


def test_isolated_worktree_keeps_subdirectory(repo: Path) -> None:
    pkg = repo / "packages" / "web"
    pkg.mkdir(parents=True)
    (pkg / "marker.txt").write_text("web")
    git(repo, "add", ".")
    git(repo, "commit", "--quiet", "-m", "pkg")

    with isolated_worktree("HEAD", pkg) as wt:
        assert wt.name == "web"
        assert (wt / "marker.txt").read_text() == "web"


def test_bad_revision(repo: Path) -> None:
    with pytest.raises(CheckoutFailure, match="no-such-rev"):
        with isolated_worktree("no-such-rev", repo):
            pass
    with pytest.raises(CheckoutFailure):
        checkout("no-such-rev", repo)


def test_in_place_checkout(repo: Path) -> None:
    base = _commit_head(repo)
    checkout(base, repo)
    assert (repo / "src.txt").read_text() == "x" * 100


@pytest.mark.parametrize("isolate", [True, False])
def test_diff_assets_end_to_end(repo: Path, isolate: bool) -> None:
    base = _commit_head(repo)
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["build_command"] = [sys.executable, "build.py"]
    config["isolate"] = isolate

    report = diff_assets(repo, base, config)

    assert [(d.key, d.status, d.delta_bytes) for d in report.deltas] == [
        ("app.js", DeltaStatus.CHANGED, 60),
    ]
    assert report.total_delta_bytes == 60


def test_link_shared_paths_skips_missing_and_existing(tmp_path: Path) -> None:
    source = tmp_path / "ws"
    target = tmp_path / "wt"
    (source / "node_modules").mkdir(parents=True)
    (source / "vendor").mkdir()
    (target / "vendor").mkdir(parents=True)

    linked = link_shared_paths(source, target, ["node_modules", "vendor", ".venv"])

    assert linked == [target / "node_modules"]
    assert (target / "node_modules").is_symlink()
    assert not (target / "vendor").is_symlink()
    assert not (target / ".venv").exists()
