"""Pytest configuration and fixtures for assetdelta tests."""
from __future__ import annotations

import copy
from pathlib import Path

import pytest

from assetdelta.config import DEFAULT_CONFIG
from assetdelta.inventory import AssetRecord

ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_STEP_SUMMARY",
    "ASSETDELTA_HOME",
    "ASSETDELTA_TOKEN",
    "ASSETDELTA_BUILD_COMMAND",
    "ASSETDELTA_SETUP_COMMAND",
    "ASSETDELTA_OUTPUT_DIR",
    "ASSETDELTA_USE_PR_ARTIFACTS",
    "ASSETDELTA_ISOLATE",
    "ASSETDELTA_GZIP",
    "ASSETDELTA_RECOGNIZERS",
    "ASSETDELTA_COLLISION_POLICY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the runner's GitHub / assetdelta environment out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    """A fresh copy of the default config."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def write_build():
    """Write {relative path: size} as files of that many bytes under a directory."""

    def _write(root: Path, files: dict[str, int]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for rel, size in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"a" * size)
        return root

    return _write


@pytest.fixture
def records():
    """Build AssetRecords from {path: size}."""

    def _records(files: dict[str, int]) -> list[AssetRecord]:
        return [AssetRecord(path, size) for path, size in sorted(files.items())]

    return _records
