"""Replication state resolution.

The state of a source/destination pair is never stored anywhere. It is
derived on every run from the replication markers that exist on both sides,
so snapshots deleted by hand on either side are picked up automatically.
"""

import enum
import logging
from dataclasses import dataclass

from .. import __util__, relative_dataset
from .inventory import Snapshot, get_dataset, list_snapshots
from .naming import SnapshotKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplicationPair:
    """A source dataset and the destination that mirrors it.

    ``source_root`` and ``destination_root`` anchor the two hierarchies;
    when omitted the datasets are their own roots.
    """

    source: str
    destination: str
    source_root: str | None = None
    destination_root: str | None = None

    @property
    def roots(self) -> tuple[str, str]:
        return (
            self.source_root or self.source,
            self.destination_root or self.destination,
        )

    def validate(self) -> str:
        """Check that the destination mirrors the source under the roots.

        Returns:
            The path suffix shared by source and destination

        Raises:
            StructureMismatch: If the paths do not correspond
        """
        source_root, destination_root = self.roots
        suffix = relative_dataset(self.source, source_root)
        if suffix is None:
            raise __util__.StructureMismatch(
                f"{self.source} is not below source root {source_root}"
            )
        expected = f"{destination_root}/{suffix}" if suffix else destination_root
        if self.destination != expected:
            raise __util__.StructureMismatch(
                f"destination {self.destination} does not mirror {self.source}; "
                f"expected {expected}"
            )
        if relative_dataset(self.destination, self.source) is not None:
            raise __util__.StructureMismatch(
                f"destination {self.destination} lies inside source {self.source}"
            )
        return suffix

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


class ReplicationStatus(enum.Enum):
    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class ReplicationState:
    """Derived replication state of a pair.

    ``marker`` is the common basis snapshot (on the source) when synced.
    """

    status: ReplicationStatus
    marker: Snapshot | None = None

    @classmethod
    def uninitialized(cls) -> "ReplicationState":
        return cls(ReplicationStatus.UNINITIALIZED)

    @classmethod
    def synced_at(cls, marker: Snapshot) -> "ReplicationState":
        return cls(ReplicationStatus.SYNCED, marker)

    @classmethod
    def diverged(cls) -> "ReplicationState":
        return cls(ReplicationStatus.DIVERGED)

    def __str__(self) -> str:
        if self.status is ReplicationStatus.SYNCED and self.marker is not None:
            return f"synced at {self.marker.label}"
        return self.status.value


def _markers(snapshots) -> dict[str, Snapshot]:
    return {s.label: s for s in snapshots if s.kind is SnapshotKind.MARKER}


def latest_common_marker(source_snapshots, destination_snapshots) -> Snapshot | None:
    """Pick the newest marker label present on both sides.

    Newest means latest embedded timestamp; equal timestamps fall back to
    lexical label order so the choice is always deterministic.
    """
    source_markers = _markers(source_snapshots)
    common = source_markers.keys() & _markers(destination_snapshots).keys()
    if not common:
        return None
    return max((source_markers[label] for label in common), key=Snapshot.sort_key)


def resolve(zfs, pair: ReplicationPair) -> ReplicationState:
    """Derive the replication state of ``pair`` from live snapshot sets.

    Raises:
        StructureMismatch: If the pair's paths do not correspond
        InventoryError: If the source is missing or the storage layer fails
    """
    pair.validate()

    source = get_dataset(zfs, pair.source)
    if not source.exists:
        raise __util__.InventoryError(f"Source dataset {pair.source} does not exist")

    destination = get_dataset(zfs, pair.destination)
    if not destination.exists:
        logger.debug("%s: destination does not exist", pair)
        return ReplicationState.uninitialized()

    marker = latest_common_marker(
        list_snapshots(zfs, pair.source),
        list_snapshots(zfs, pair.destination),
    )
    if marker is None:
        logger.debug("%s: no common replication marker", pair)
        return ReplicationState.diverged()

    logger.debug("%s: latest common marker %s", pair, marker.label)
    return ReplicationState.synced_at(marker)
