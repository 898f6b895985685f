"""Initial and incremental replication between two dataset hierarchies.

Both operations create a recursive replication marker on the source, pipe a
replication stream into the destination and then force the destination
hierarchy unmounted and read-only. A marker created on the source is kept
even when the transfer fails; the next run resolves the basis again from
live state, so a retry never applies the same increment twice.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from .. import __util__
from ..zfs.cli import RECEIVE_PROPERTIES
from .inventory import Snapshot, list_datasets, list_snapshots
from .naming import SnapshotKind, marker_label
from .resolver import ReplicationPair, ReplicationStatus, resolve

logger = logging.getLogger(__name__)


@dataclass
class ReplicationResult:
    """Outcome of one replication run."""

    pair: ReplicationPair
    marker: Snapshot
    basis: Snapshot | None = None
    started_at: float = field(default_factory=time.time)
    completed_at: float = 0.0
    pruned: list[str] = field(default_factory=list)
    prune_failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def incremental(self) -> bool:
        return self.basis is not None

    @property
    def duration(self) -> float:
        if self.completed_at:
            return self.completed_at - self.started_at
        return time.time() - self.started_at


def init_replicate(
    zfs, pair: ReplicationPair, now: datetime | None = None, prune_markers=True
) -> ReplicationResult:
    """Replicate the full source hierarchy into a new destination.

    Args:
        zfs: Storage layer
        pair: Source and destination datasets
        now: Time encoded into the new marker label
        prune_markers: Remove older markers left on the source afterwards

    Raises:
        StructureMismatch: If the destination does not mirror the source
        AlreadyInitialized: If the destination exists already
        TransferFailure: If creating the marker or the transfer fails
    """
    state = resolve(zfs, pair)
    if state.status is not ReplicationStatus.UNINITIALIZED:
        raise __util__.AlreadyInitialized(
            f"Destination {pair.destination} already exists ({state}); "
            "refusing to overwrite it"
        )

    marker = Snapshot.from_name(f"{pair.source}@{marker_label(now or datetime.now())}")
    _create_marker(zfs, marker)
    result = ReplicationResult(pair=pair, marker=marker)

    logger.info("Full replication %s using %s", pair, marker.label)
    _transfer(zfs, marker, pair.destination)
    enforce_destination_readonly(zfs, pair.destination)
    logger.info("Initial replication of %s succeeded", pair)

    if prune_markers:
        _prune_older_markers(zfs, pair.source, marker, result)

    result.completed_at = time.time()
    return result


def incremental_replicate(
    zfs, pair: ReplicationPair, now: datetime | None = None, prune_markers=True
) -> ReplicationResult:
    """Send everything since the latest common marker to the destination.

    Args:
        zfs: Storage layer
        pair: Source and destination datasets
        now: Time encoded into the new marker label
        prune_markers: Remove superseded markers on both sides afterwards

    Raises:
        StructureMismatch: If the destination does not mirror the source
        NotInitialized: If the destination does not exist yet
        DivergedState: If source and destination share no marker
        TransferFailure: If creating the marker or the transfer fails
    """
    state = resolve(zfs, pair)
    if state.status is ReplicationStatus.UNINITIALIZED:
        raise __util__.NotInitialized(
            f"Destination {pair.destination} does not exist; run init_repl first"
        )
    if state.status is ReplicationStatus.DIVERGED or state.marker is None:
        raise __util__.DivergedState(
            f"{pair.source} and {pair.destination} share no replication marker; "
            "manual intervention required"
        )

    basis = state.marker
    marker = Snapshot.from_name(f"{pair.source}@{marker_label(now or datetime.now())}")
    if marker.sort_key() <= basis.sort_key():
        raise __util__.TransferFailure(
            f"New marker {marker.label} would not be newer than basis {basis.label}"
        )

    _create_marker(zfs, marker)
    result = ReplicationResult(pair=pair, marker=marker, basis=basis)

    logger.info(
        "Incremental replication %s from %s to %s", pair, basis.label, marker.label
    )
    _transfer(zfs, marker, pair.destination, base=basis)
    enforce_destination_readonly(zfs, pair.destination)
    logger.info("Incremental replication of %s succeeded", pair)

    if prune_markers:
        _prune_older_markers(zfs, pair.source, marker, result)
        _prune_older_markers(zfs, pair.destination, marker, result)

    result.completed_at = time.time()
    return result


def enforce_destination_readonly(zfs, destination: str) -> None:
    """Force every dataset of the destination hierarchy read-only and unmounted.

    Applied after every successful transfer regardless of what the receive
    already set.

    Raises:
        TransferFailure: If a property cannot be set or a dataset unmounted
    """
    if getattr(zfs, "dry_run", False):
        logger.info("dry run: force %s unmounted and read-only", destination)
        return

    try:
        for dataset in list_datasets(zfs, [destination]):
            for prop, value in RECEIVE_PROPERTIES:
                zfs.set_property(dataset.name, prop, value)
        # Changing the mountpoint unmounts most datasets already
        for dataset in list_datasets(zfs, [destination]):
            if dataset.mounted:
                logger.info("Unmounting %s", dataset.name)
                zfs.unmount(dataset.name)
    except (__util__.CommandError, __util__.InventoryError) as e:
        raise __util__.TransferFailure(
            f"Cannot make {destination} read-only and unmounted: {e}"
        ) from e


def _create_marker(zfs, marker: Snapshot) -> None:
    try:
        zfs.create_snapshot(marker.name, recursive=True)
    except __util__.CommandError as e:
        raise __util__.TransferFailure(
            f"Cannot create replication marker {marker}: {e}"
        ) from e
    logger.info("Created replication marker %s", marker)


def _transfer(zfs, marker: Snapshot, destination: str, base: Snapshot | None = None):
    try:
        zfs.send_receive(
            marker.name, destination, base=base.name if base is not None else None
        )
    except __util__.CommandError as e:
        logger.error("Transfer of %s failed, keeping marker for retry", marker)
        raise __util__.TransferFailure(
            f"Transfer of {marker} to {destination} failed: {e}"
        ) from e


def _prune_older_markers(
    zfs, dataset: str, marker: Snapshot, result: ReplicationResult
) -> None:
    """Destroy markers on ``dataset`` older than ``marker``; failures are recorded."""
    try:
        snapshots = list_snapshots(zfs, dataset)
    except __util__.InventoryError as e:
        logger.warning("Cannot list markers of %s for pruning: %s", dataset, e)
        result.prune_failures.append((dataset, str(e)))
        return

    for snap in snapshots:
        if snap.kind is not SnapshotKind.MARKER or snap.label == marker.label:
            continue
        if snap.sort_key() >= marker.sort_key():
            continue
        try:
            zfs.destroy_snapshot(snap.name, recursive=True)
        except __util__.CommandError as e:
            logger.warning("Failed to prune marker %s: %s", snap, e)
            result.prune_failures.append((snap.name, str(e)))
            continue
        logger.info("Pruned replication marker %s", snap)
        result.pruned.append(snap.name)
