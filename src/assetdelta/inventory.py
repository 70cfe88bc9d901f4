"""Asset inventory collection — build the project and list its output files.

Usage:
    records = collect(Path("."), should_build=True, build_command="npm run build")
"""
from __future__ import annotations

import fnmatch
import gzip
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from .errors import CollectionFailure

logger = logging.getLogger(__name__)

DEFAULT_BUILD_COMMAND = "npm run build"
DEFAULT_OUTPUT_DIR = "dist"

# Only the tail of a failing build's stderr is kept in the error message
STDERR_TAIL_CHARS = 2000


@dataclass(frozen=True)
class AssetRecord:
    """One built file: path relative to the output directory, plus its sizes."""

    path: str
    size_bytes: int
    gzip_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")


def run_build(directory: Path, build_command: Union[str, Sequence[str]]) -> None:
    """Run the project's build in `directory`. Raises CollectionFailure on error."""
    argv = shlex.split(build_command) if isinstance(build_command, str) else list(build_command)
    if not argv:
        raise CollectionFailure(directory, "Empty build command")

    logger.info("Building in %s: %s", directory, " ".join(argv))
    try:
        result = subprocess.run(
            argv,
            cwd=directory,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise CollectionFailure(directory, f"Build command could not start: {exc}") from exc

    if result.returncode != 0:
        tail = (result.stderr or result.stdout or "").strip()[-STDERR_TAIL_CHARS:]
        detail = f"Build command {' '.join(argv)!r} exited with {result.returncode}"
        if tail:
            detail += f"\n{tail}"
        raise CollectionFailure(directory, detail)


def gzip_size(path: Path) -> int:
    """Size of the file after gzip at maximum compression."""
    return len(gzip.compress(path.read_bytes(), compresslevel=9, mtime=0))


def _selected(rel: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    include = list(include)
    if include and not any(fnmatch.fnmatch(rel, pat) for pat in include):
        return False
    if any(fnmatch.fnmatch(rel, pat) for pat in exclude):
        return False
    return True


def list_assets(
    output_root: Path,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    measure_gzip: bool = False,
) -> list[AssetRecord]:
    """One AssetRecord per regular file under `output_root`, sorted by path.

    Symlinks and other non-regular entries are skipped.
    """
    include = list(include)
    exclude = list(exclude)
    records: list[AssetRecord] = []
    for entry in output_root.rglob("*"):
        if entry.is_symlink() or not entry.is_file():
            continue
        rel = entry.relative_to(output_root).as_posix()
        if not _selected(rel, include, exclude):
            continue
        try:
            size = entry.stat().st_size
            gzipped = gzip_size(entry) if measure_gzip else None
        except OSError as exc:
            raise CollectionFailure(entry, f"Could not read asset: {exc}") from exc
        records.append(AssetRecord(path=rel, size_bytes=size, gzip_bytes=gzipped))
    records.sort(key=lambda r: r.path)
    return records


def collect(
    directory: Path,
    should_build: bool,
    *,
    build_command: Union[str, Sequence[str]] = DEFAULT_BUILD_COMMAND,
    output_dir: str = DEFAULT_OUTPUT_DIR,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    measure_gzip: bool = True,
) -> list[AssetRecord]:
    """Optionally build, then inventory `directory / output_dir`.

    Raises CollectionFailure if the build fails or the output directory does
    not exist afterwards.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise CollectionFailure(directory, "Project directory does not exist")

    if should_build:
        run_build(directory, build_command)

    output_root = directory / output_dir
    if not output_root.is_dir():
        raise CollectionFailure(output_root, "Build output directory not found")

    records = list_assets(output_root, include, exclude, measure_gzip)
    logger.info("Collected %d assets from %s", len(records), output_root)
    return records


__all__ = [
    "AssetRecord",
    "DEFAULT_BUILD_COMMAND",
    "DEFAULT_OUTPUT_DIR",
    "collect",
    "gzip_size",
    "list_assets",
    "run_build",
]
