"""Size diff between two normalised builds."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from .fingerprint import NormalizedInventory


class DeltaStatus(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class AssetDelta:
    key: str
    before_size: Optional[int]
    after_size: Optional[int]
    delta_bytes: int
    status: DeltaStatus
    gzip_delta: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class DiffReport:
    """Deltas ordered largest absolute change first, ties by key."""

    deltas: tuple[AssetDelta, ...]
    total_delta_bytes: int
    total_gzip_delta: Optional[int] = None

    def changed_entries(self) -> list[AssetDelta]:
        return [d for d in self.deltas if d.status is not DeltaStatus.UNCHANGED]

    def counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in DeltaStatus}
        for delta in self.deltas:
            counts[delta.status.value] += 1
        return counts

    @property
    def has_gzip(self) -> bool:
        return self.total_gzip_delta is not None

    def to_dict(self) -> dict:
        return {
            "total_delta_bytes": self.total_delta_bytes,
            "total_gzip_delta": self.total_gzip_delta,
            "counts": self.counts(),
            "deltas": [d.to_dict() for d in self.deltas],
        }


def _classify(before: Optional[int], after: Optional[int]) -> tuple[DeltaStatus, int]:
    if after is None:
        return DeltaStatus.REMOVED, -before
    if before is None:
        return DeltaStatus.ADDED, after
    if before == after:
        return DeltaStatus.UNCHANGED, 0
    return DeltaStatus.CHANGED, after - before


def diff_sizes(before: NormalizedInventory, after: NormalizedInventory) -> DiffReport:
    """Compare two builds key by key.

    removed:   only in `before`, delta = -before
    added:     only in `after`,  delta = +after
    unchanged: same size,        delta = 0
    changed:   otherwise,        delta = after - before

    Unchanged entries stay in the report; renderers decide whether to show them.
    """
    # An empty build has nothing to compress, so it never disables gzip deltas.
    with_gzip = (
        (before.has_gzip or not before.sizes)
        and (after.has_gzip or not after.sizes)
        and bool(before.sizes or after.sizes)
    )
    deltas = []
    for key in before.sizes.keys() | after.sizes.keys():
        before_size = before.sizes.get(key)
        after_size = after.sizes.get(key)
        status, delta = _classify(before_size, after_size)

        gzip_delta = None
        if with_gzip:
            gzip_delta = after.gzip_sizes.get(key, 0) - before.gzip_sizes.get(key, 0)

        deltas.append(AssetDelta(
            key=key,
            before_size=before_size,
            after_size=after_size,
            delta_bytes=delta,
            status=status,
            gzip_delta=gzip_delta,
        ))

    deltas.sort(key=lambda d: (-abs(d.delta_bytes), d.key))
    return DiffReport(
        deltas=tuple(deltas),
        total_delta_bytes=sum(d.delta_bytes for d in deltas),
        total_gzip_delta=sum(d.gzip_delta for d in deltas) if with_gzip else None,
    )


__all__ = ["AssetDelta", "DeltaStatus", "DiffReport", "diff_sizes"]
