"""Tests for layered config loading."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from assetdelta.config import DEFAULT_CONFIG, load_config
from assetdelta.errors import ConfigError


def _write(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


def test_defaults_without_files(tmp_path: Path) -> None:
    config = load_config(workspace=tmp_path)

    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_isolated_base_build_shares_node_modules_by_default(tmp_path: Path) -> None:
    config = load_config(workspace=tmp_path)

    assert config["isolate"] is True
    assert config["setup_command"] is None
    assert config["shared_paths"] == ["node_modules"]


def test_global_home_not_read_under_pytest(tmp_path: Path, monkeypatch) -> None:
    home = tmp_path / "home"
    _write(home / "config.json", {"output_dir": "from-home"})
    monkeypatch.setenv("ASSETDELTA_HOME", str(home))

    assert load_config()["output_dir"] == "dist"


def test_workspace_overrides_explicit_config(tmp_path: Path) -> None:
    global_cfg = _write(tmp_path / "global.json", {
        "output_dir": "build",
        "build_command": "yarn build",
        "fingerprint": {"marker": "[hash]"},
    })
    ws = tmp_path / "repo"
    _write(ws / ".assetdelta" / "config.json", {"output_dir": "public", "fingerprint": {"collision_policy": "suffix"}})

    config = load_config(global_cfg, workspace=ws)

    assert config["output_dir"] == "public"
    assert config["build_command"] == "yarn build"
    # nested dicts merge instead of replacing
    assert config["fingerprint"]["marker"] == "[hash]"
    assert config["fingerprint"]["collision_policy"] == "suffix"
    assert config["fingerprint"]["recognizers"] == DEFAULT_CONFIG["fingerprint"]["recognizers"]


def test_env_overrides_files(tmp_path: Path, monkeypatch) -> None:
    ws = tmp_path / "repo"
    _write(ws / ".assetdelta" / "config.json", {"output_dir": "public", "isolate": True})
    monkeypatch.setenv("ASSETDELTA_OUTPUT_DIR", "out")
    monkeypatch.setenv("ASSETDELTA_ISOLATE", "false")
    monkeypatch.setenv("ASSETDELTA_USE_PR_ARTIFACTS", "yes")
    monkeypatch.setenv("ASSETDELTA_RECOGNIZERS", "vite, query")
    monkeypatch.setenv("ASSETDELTA_COLLISION_POLICY", "SUFFIX")
    monkeypatch.setenv("ASSETDELTA_SETUP_COMMAND", "npm ci")

    config = load_config(workspace=ws)

    assert config["output_dir"] == "out"
    assert config["isolate"] is False
    assert config["use_pr_artifacts"] is True
    assert config["fingerprint"]["recognizers"] == ["vite", "query"]
    assert config["fingerprint"]["collision_policy"] == "suffix"
    assert config["setup_command"] == "npm ci"


def test_token_from_token_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghs_default")
    assert load_config(workspace=tmp_path)["github"]["token"] == "ghs_default"

    ws = tmp_path / "repo"
    _write(ws / ".assetdelta" / "config.json", {"github": {"token_env": "MY_BOT_TOKEN"}})
    monkeypatch.setenv("MY_BOT_TOKEN", "ghs_bot")
    assert load_config(workspace=ws)["github"]["token"] == "ghs_bot"


def test_unreadable_file_is_ignored(tmp_path: Path, caplog) -> None:
    ws = tmp_path / "repo"
    bad = ws / ".assetdelta" / "config.json"
    bad.parent.mkdir(parents=True)
    bad.write_text("{not json")

    with caplog.at_level(logging.WARNING, logger="assetdelta.config"):
        config = load_config(workspace=ws)

    assert config["output_dir"] == "dist"
    assert "Could not read" in caplog.text


@pytest.mark.parametrize("override, message", [
    ({"fingerprint": {"collision_policy": "max"}}, "collision_policy"),
    ({"fingerprint": {"recognizers": ["dot-hex", "bogus"]}}, "bogus"),
    ({"output_dir": ""}, "output_dir"),
    ({"include": "*.js"}, "include"),
    ({"shared_paths": "node_modules"}, "shared_paths"),
])
def test_invalid_values_raise(tmp_path: Path, override, message) -> None:
    ws = tmp_path / "repo"
    _write(ws / ".assetdelta" / "config.json", override)

    with pytest.raises(ConfigError, match=message):
        load_config(workspace=ws)
