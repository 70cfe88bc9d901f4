"""Failure types raised across the collect → normalise → diff → publish pipeline.

Everything except PublishFailure aborts the run.
"""
from __future__ import annotations


class AssetDeltaError(Exception):
    """Base class for all assetdelta failures."""


class ConfigError(AssetDeltaError):
    """Raised when a configuration value cannot be used."""


class CollectionFailure(AssetDeltaError):
    """The build step failed, the output directory is missing, or an asset could not be read."""

    def __init__(self, directory, detail: str):
        self.directory = str(directory)
        self.detail = detail
        super().__init__(f"{detail} (directory: {self.directory})")


class NormalizationFailure(AssetDeltaError):
    """An inventory path could not be normalised (empty or not a string)."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Cannot normalise asset path {path!r}")


class CheckoutFailure(AssetDeltaError):
    """Switching the working tree to another revision failed."""

    def __init__(self, revision: str, directory, detail: str = ""):
        self.revision = revision
        self.directory = str(directory)
        self.detail = detail
        message = f"Could not check out {revision} in {self.directory}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PullRequestNotFound(AssetDeltaError):
    """No pull request could be associated with the current commit."""

    def __init__(self, sha: str):
        self.sha = sha
        super().__init__(f"No pull requests found for commit {sha}")


class PublishFailure(AssetDeltaError):
    """Posting the report failed. Recoverable: the text goes to the fallback channel."""


__all__ = [
    "AssetDeltaError",
    "ConfigError",
    "CollectionFailure",
    "NormalizationFailure",
    "CheckoutFailure",
    "PullRequestNotFound",
    "PublishFailure",
]
