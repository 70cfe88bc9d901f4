"""assetdelta - built-asset size deltas for pull requests.

Submodules:
    inventory   - Build the project and list its output files
    fingerprint - Strip content hashes from filenames into logical keys
    diff        - Per-asset and total size deltas between two builds
    render      - Markdown / JSON / Rich report output
    pipeline    - CI orchestration (collect, checkout, diff, publish)
    cli         - Command-line interface

Public API:
    from assetdelta import normalise_fingerprint, diff_sizes, build_output_text

    before = normalise_fingerprint(collect(base_dir, should_build=True))
    after = normalise_fingerprint(collect(head_dir, should_build=True))
    print(build_output_text(diff_sizes(before, after)))
"""
from __future__ import annotations

from assetdelta.diff import AssetDelta, DeltaStatus, DiffReport, diff_sizes
from assetdelta.errors import (
    AssetDeltaError,
    CheckoutFailure,
    CollectionFailure,
    ConfigError,
    NormalizationFailure,
    PublishFailure,
    PullRequestNotFound,
)
from assetdelta.fingerprint import (
    FingerprintNormalizer,
    NormalizedInventory,
    RegexRecognizer,
    normalise_fingerprint,
)
from assetdelta.inventory import AssetRecord, collect
from assetdelta.render import build_output_text, format_bytes

__version__ = "0.1.0"

__all__ = [
    "AssetDelta",
    "AssetDeltaError",
    "AssetRecord",
    "CheckoutFailure",
    "CollectionFailure",
    "ConfigError",
    "DeltaStatus",
    "DiffReport",
    "FingerprintNormalizer",
    "NormalizationFailure",
    "NormalizedInventory",
    "PublishFailure",
    "PullRequestNotFound",
    "RegexRecognizer",
    "build_output_text",
    "collect",
    "diff_sizes",
    "format_bytes",
    "normalise_fingerprint",
]
