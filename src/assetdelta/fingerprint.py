"""Fingerprint normalisation — map hashed build filenames to stable keys.

Build tools embed content hashes in filenames for cache busting, so the same
asset is called ``app.a1b2c3.js`` in one build and ``app.9f8e7d.js`` in the
next. The normaliser strips those fragments so both map to ``app.js``.

Recognition is heuristic, so it is done by a chain of named recognizers that
can be swapped per build tool:

    dot-hex   app.a1b2c3.js        -> app.js      (webpack, Rollup)
    dash-hex  vendor-<md5>.js      -> vendor.js   (Ember / Broccoli)
    query     app.js?v=123         -> app.js
    vite      index-BdK3h2xZ.js    -> index.js    (opt-in, base64url hashes)

Only the filename component is rewritten and the final extension is never
treated as a fingerprint.
"""
from __future__ import annotations

import logging
import posixpath
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .errors import ConfigError, NormalizationFailure
from .inventory import AssetRecord

logger = logging.getLogger(__name__)

COLLISION_POLICIES = ("sum", "suffix")
# query first so a hash before "?v=..." is still followed by a bare extension
DEFAULT_RECOGNIZERS = ("query", "dot-hex", "dash-hex")


class Recognizer(Protocol):
    name: str

    def strip(self, filename: str, marker: str = "") -> str:
        ...


@dataclass(frozen=True)
class RegexRecognizer:
    """Removes every match of the ``hash`` group, together with its ``sep``.

    With a non-empty ``marker`` the hash is replaced by the marker and the
    separator is kept instead, unless ``keeps_marker`` is false: such
    fragments are never part of the asset identity and are always dropped.
    """

    name: str
    pattern: re.Pattern
    keeps_marker: bool = True

    def strip(self, filename: str, marker: str = "") -> str:
        def _replace(match: re.Match) -> str:
            if marker and self.keeps_marker:
                return match.group("sep") + marker
            return ""

        return self.pattern.sub(_replace, filename)


# A fragment must be followed by at least one extension segment.
_EXT_TAIL = r"(?=(?:\.[A-Za-z0-9]+)+$)"

RECOGNIZERS: dict[str, RegexRecognizer] = {
    "dot-hex": RegexRecognizer(
        "dot-hex",
        re.compile(r"(?<=\w)(?P<sep>\.)(?P<hash>[0-9a-fA-F]{3,})" + _EXT_TAIL),
    ),
    "dash-hex": RegexRecognizer(
        "dash-hex",
        re.compile(r"(?<=\w)(?P<sep>-)(?P<hash>[0-9a-fA-F]{8,})" + _EXT_TAIL),
    ),
    "query": RegexRecognizer(
        "query",
        re.compile(r"(?<=.)(?P<sep>\?)(?P<hash>.*)$"),
        keeps_marker=False,
    ),
    "vite": RegexRecognizer(
        "vite",
        re.compile(
            r"(?<=\w)(?P<sep>-)(?=[A-Za-z0-9_-]*[A-Z0-9])(?P<hash>[A-Za-z0-9_-]{8})"
            r"(?=\.[A-Za-z0-9]+$)"
        ),
    ),
}


def recognizers_from_names(names: Iterable[str]) -> list[RegexRecognizer]:
    """Resolve recognizer names from config. Unknown names raise ConfigError."""
    resolved = []
    for name in names:
        try:
            resolved.append(RECOGNIZERS[name])
        except KeyError:
            known = ", ".join(sorted(RECOGNIZERS))
            raise ConfigError(f"Unknown fingerprint recognizer {name!r} (known: {known})") from None
    return resolved


@dataclass(frozen=True)
class NormalizedInventory:
    """Logical key -> size for one build.

    ``gzip_sizes`` is empty unless every record of the build carried a gzip
    size. ``collisions`` lists, per key, the raw paths that were merged or
    renamed because they normalised to the same key.
    """

    sizes: dict[str, int]
    gzip_sizes: dict[str, int] = field(default_factory=dict)
    collisions: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_sizes(cls, sizes: Mapping[str, int], gzip_sizes: Optional[Mapping[str, int]] = None) -> "NormalizedInventory":
        return cls(sizes=dict(sizes), gzip_sizes=dict(gzip_sizes or {}))

    @property
    def total_bytes(self) -> int:
        return sum(self.sizes.values())

    @property
    def has_gzip(self) -> bool:
        return bool(self.sizes) and self.gzip_sizes.keys() == self.sizes.keys()

    def __len__(self) -> int:
        return len(self.sizes)


class FingerprintNormalizer:
    """Applies a recognizer chain to paths and folds an inventory into keys."""

    def __init__(
        self,
        recognizers: Optional[Sequence[Recognizer]] = None,
        marker: str = "",
        collision_policy: str = "sum",
    ):
        if collision_policy not in COLLISION_POLICIES:
            raise ConfigError(
                f"Unknown collision policy {collision_policy!r} "
                f"(expected one of: {', '.join(COLLISION_POLICIES)})"
            )
        if recognizers is None:
            recognizers = recognizers_from_names(DEFAULT_RECOGNIZERS)
        self.recognizers = list(recognizers)
        self.marker = marker
        self.collision_policy = collision_policy

    def normalise_path(self, path: str) -> str:
        """Return the logical key for `path`; unchanged when nothing matches."""
        if not isinstance(path, str) or not path.strip():
            raise NormalizationFailure(path)

        directory, filename = posixpath.split(path)
        stripped = filename
        for recognizer in self.recognizers:
            stripped = recognizer.strip(stripped, self.marker)

        if stripped == filename:
            return path
        key = posixpath.join(directory, stripped) if directory else stripped
        logger.debug("Normalised %s -> %s", path, key)
        return key

    def normalise(self, records: Iterable[AssetRecord]) -> NormalizedInventory:
        """Fold records into a NormalizedInventory; total size is preserved."""
        records = list(records)
        groups: "OrderedDict[str, list[AssetRecord]]" = OrderedDict()
        for record in records:
            groups.setdefault(self.normalise_path(record.path), []).append(record)

        with_gzip = bool(records) and all(r.gzip_bytes is not None for r in records)
        sizes: dict[str, int] = {}
        gzip_sizes: dict[str, int] = {}
        collisions: dict[str, tuple[str, ...]] = {}
        taken = set(groups)

        for key, members in groups.items():
            members = sorted(members, key=lambda r: r.path)
            if len(members) > 1:
                collisions[key] = tuple(r.path for r in members)
                logger.info(
                    "%d assets normalise to %s (%s): %s",
                    len(members), key, self.collision_policy,
                    ", ".join(r.path for r in members),
                )

            if self.collision_policy == "sum" or len(members) == 1:
                sizes[key] = sum(r.size_bytes for r in members)
                if with_gzip:
                    gzip_sizes[key] = sum(r.gzip_bytes for r in members)
                continue

            # suffix: first raw path keeps the key, the rest get key#2, key#3, ...
            index = 1
            for record in members:
                name = key
                if index > 1:
                    name = f"{key}#{index}"
                    while name in taken:
                        index += 1
                        name = f"{key}#{index}"
                    taken.add(name)
                sizes[name] = record.size_bytes
                if with_gzip:
                    gzip_sizes[name] = record.gzip_bytes
                index += 1

        return NormalizedInventory(sizes=sizes, gzip_sizes=gzip_sizes, collisions=collisions)


def normalise_fingerprint(
    records: Iterable[AssetRecord],
    recognizers: Optional[Sequence[Recognizer]] = None,
    marker: str = "",
    collision_policy: str = "sum",
) -> NormalizedInventory:
    """Convenience wrapper: normalise one inventory with a fresh normaliser."""
    return FingerprintNormalizer(recognizers, marker, collision_policy).normalise(records)


__all__ = [
    "COLLISION_POLICIES",
    "DEFAULT_RECOGNIZERS",
    "FingerprintNormalizer",
    "NormalizedInventory",
    "RECOGNIZERS",
    "Recognizer",
    "RegexRecognizer",
    "normalise_fingerprint",
    "recognizers_from_names",
]
