"""
assetdelta — Configuration

Loads config from:
  1. Defaults
  2. Global config (CLI --config or ~/.assetdelta/config.json)
  3. Workspace override (<workspace>/.assetdelta/config.json)
  4. Environment variables

CLI flags are applied on top by the commands themselves.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .fingerprint import COLLISION_POLICIES, DEFAULT_RECOGNIZERS, RECOGNIZERS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"

DEFAULT_CONFIG = {
    "build_command": "npm run build",
    "output_dir": "dist",
    "include": [],
    "exclude": [],
    "gzip": True,
    # Reuse the head build already on disk instead of rebuilding it.
    "use_pr_artifacts": False,
    # Run before the base build inside an isolated worktree (e.g. "npm ci").
    "setup_command": None,
    # Without a setup_command these are symlinked from the workspace into the
    # isolated worktree so the base build finds installed dependencies.
    "shared_paths": ["node_modules"],
    # Build the base revision in a separate git worktree instead of checking
    # it out over the working directory.
    "isolate": True,
    "fingerprint": {
        "recognizers": list(DEFAULT_RECOGNIZERS),
        "marker": "",
        "collision_policy": "sum",
    },
    "report": {
        "title": "Asset size report",
        "show_unchanged": False,
        "step_summary": True,
    },
    "github": {
        "token": None,
        "token_env": "GITHUB_TOKEN",
        "api_url": "https://api.github.com",
    },
}


def load_config(config_path: Optional[Path] = None, workspace: Optional[Path] = None) -> dict:
    """Load assetdelta config.

    `config_path` (CLI --config) replaces the global layer. Under pytest the
    implicit global file is never read so tests stay hermetic.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    is_pytest = bool(os.environ.get("PYTEST_CURRENT_TEST"))
    home = Path(os.environ["ASSETDELTA_HOME"]) if os.environ.get("ASSETDELTA_HOME") else Path.home() / ".assetdelta"
    global_path = Path(config_path) if config_path else home / CONFIG_FILENAME
    if is_pytest and config_path is None:
        global_path = None

    layers = [global_path]
    if workspace is not None:
        layers.append(Path(workspace) / ".assetdelta" / CONFIG_FILENAME)

    for path in layers:
        if path is None or not path.exists():
            continue
        loaded = _read_json(path)
        if loaded:
            config = _merge(config, loaded)
            logger.info("Loaded config from %s", path)

    _resolve_token(config)
    _apply_env_overrides(config)
    validate_config(config)
    return config


def validate_config(config: dict) -> None:
    """Raise ConfigError for values the pipeline cannot use."""
    fp = config.get("fingerprint", {})
    policy = fp.get("collision_policy")
    if policy not in COLLISION_POLICIES:
        raise ConfigError(
            f"fingerprint.collision_policy must be one of {', '.join(COLLISION_POLICIES)}, got {policy!r}"
        )
    unknown = [name for name in fp.get("recognizers", []) if name not in RECOGNIZERS]
    if unknown:
        raise ConfigError(f"Unknown fingerprint recognizers: {', '.join(unknown)}")
    if not isinstance(config.get("output_dir"), str) or not config["output_dir"]:
        raise ConfigError("output_dir must be a non-empty string")
    for key in ("include", "exclude"):
        if not isinstance(config.get(key), list):
            raise ConfigError(f"{key} must be a list of glob patterns")
    if not isinstance(config.get("shared_paths", []), list):
        raise ConfigError("shared_paths must be a list of paths")


def _read_json(path: Path) -> dict:
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: top-level JSON value is not an object", path)
        return {}
    return data


def _merge(base: dict, override: dict) -> dict:
    """Deep merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_token(config: dict) -> None:
    """Resolve github.token_env to the token value from the process env."""
    gh = config.setdefault("github", {})
    token_env = gh.get("token_env")
    if not gh.get("token") and token_env and os.environ.get(token_env):
        gh["token"] = os.environ[token_env]


def _apply_env_overrides(config: dict) -> None:
    """Apply explicit env var overrides after file/default loading."""
    build_command = os.environ.get("ASSETDELTA_BUILD_COMMAND")
    if build_command:
        config["build_command"] = build_command

    setup_command = os.environ.get("ASSETDELTA_SETUP_COMMAND")
    if setup_command:
        config["setup_command"] = setup_command

    output_dir = os.environ.get("ASSETDELTA_OUTPUT_DIR")
    if output_dir:
        config["output_dir"] = output_dir

    for env_name, key in (
        ("ASSETDELTA_USE_PR_ARTIFACTS", "use_pr_artifacts"),
        ("ASSETDELTA_ISOLATE", "isolate"),
        ("ASSETDELTA_GZIP", "gzip"),
    ):
        value = os.environ.get(env_name)
        if value is not None:
            config[key] = _to_bool(value)

    fp = config.setdefault("fingerprint", {})
    recognizers = os.environ.get("ASSETDELTA_RECOGNIZERS")
    if recognizers:
        fp["recognizers"] = [x.strip() for x in recognizers.split(",") if x.strip()]

    policy = os.environ.get("ASSETDELTA_COLLISION_POLICY")
    if policy:
        fp["collision_policy"] = policy.strip().lower()


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


__all__ = ["DEFAULT_CONFIG", "load_config", "validate_config"]
