"""Automatic snapshot creation and expiry.

Both operations are batch operations: a failure on one item is recorded in
the returned report and the batch carries on with the remaining items.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from .. import __util__
from .inventory import list_datasets, list_snapshots
from .naming import automatic_label, is_automatic, is_expired

logger = logging.getLogger(__name__)

# zfs diagnostics for snapshots pinned by a user hold or a clone
BUSY_MESSAGES = ("dataset is busy", "dependent clone", "user hold")


@dataclass
class OperationResult:
    """Outcome of one item of a batch."""

    target: str
    succeeded: bool
    message: str = ""
    busy: bool = False


@dataclass
class LifecycleReport:
    """Collected outcome of a snapshot or cleanup batch."""

    operation: str
    started_at: float = field(default_factory=time.time)
    completed_at: float = 0.0
    results: list[OperationResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> list[OperationResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def busy(self) -> list[OperationResult]:
        return [r for r in self.results if not r.succeeded and r.busy]

    @property
    def failed(self) -> list[OperationResult]:
        """Failures that make the command unsuccessful (busy ones excluded)."""
        return [r for r in self.results if not r.succeeded and not r.busy]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise PartialOperationFailure if any item failed for real."""
        if self.failed:
            raise __util__.PartialOperationFailure(
                self.operation, [(r.target, r.message) for r in self.failed]
            )


def _is_busy(error: __util__.CommandError) -> bool:
    return any(msg in error.stderr for msg in BUSY_MESSAGES)


def snapshot_all(zfs, roots=(), now: datetime | None = None) -> LifecycleReport:
    """Create an automatic snapshot on every mounted dataset under ``roots``.

    Unmounted datasets are skipped, which keeps replication destinations
    (received with ``mountpoint=none``) out of the automatic rotation.

    Args:
        zfs: Storage layer
        roots: Datasets to descend from; empty means all pools
        now: Time encoded into the snapshot label

    Returns:
        LifecycleReport with one result per mounted dataset

    Raises:
        InventoryError: If the datasets cannot be listed
    """
    now = now or datetime.now()
    label = automatic_label(now)
    report = LifecycleReport(operation="snapshot")

    for dataset in list_datasets(zfs, roots):
        if not dataset.mounted:
            logger.debug("Skipping unmounted dataset %s", dataset.name)
            report.skipped.append(dataset.name)
            continue

        name = f"{dataset.name}@{label}"
        try:
            zfs.create_snapshot(name)
        except __util__.CommandError as e:
            logger.warning("Failed to create snapshot %s: %s", name, e)
            report.results.append(OperationResult(name, False, str(e)))
            continue
        logger.info("Created snapshot %s", name)
        report.results.append(OperationResult(name, True))

    report.completed_at = time.time()
    return report


def cleanup_pool(
    zfs, pool: str, retention_hours: float, now: datetime | None = None
) -> LifecycleReport:
    """Destroy expired automatic snapshots below ``pool``.

    Only automatic snapshots are considered; replication markers and
    snapshots made by other tools are never touched. Snapshots pinned by a
    hold or a clone fail to destroy; they are reported as busy and neither
    forced nor retried.

    Args:
        zfs: Storage layer
        pool: Pool (or dataset) whose hierarchy is cleaned
        retention_hours: Age after which an automatic snapshot expires
        now: Reference time for the age calculation

    Returns:
        LifecycleReport with one result per expired snapshot

    Raises:
        InventoryError: If the snapshots cannot be listed
    """
    now = now or datetime.now()
    report = LifecycleReport(operation="snapshot cleanup")

    snapshots = list_snapshots(zfs, pool, recursive=True)
    expired = [
        s
        for s in snapshots
        if is_automatic(s.label) and is_expired(s.label, retention_hours, now)
    ]
    logger.info(
        "%s: %d snapshot(s), %d expired automatic snapshot(s) older than %sh",
        pool,
        len(snapshots),
        len(expired),
        retention_hours,
    )

    expired_names = {s.name for s in expired}
    report.skipped = [s.name for s in snapshots if s.name not in expired_names]

    for snap in expired:
        try:
            zfs.destroy_snapshot(snap.name)
        except __util__.CommandError as e:
            if _is_busy(e):
                logger.warning("Snapshot %s is held or cloned, keeping it: %s", snap, e)
                report.results.append(OperationResult(snap.name, False, str(e), busy=True))
            else:
                logger.error("Failed to destroy snapshot %s: %s", snap, e)
                report.results.append(OperationResult(snap.name, False, str(e)))
            continue
        logger.info("Destroyed snapshot %s", snap)
        report.results.append(OperationResult(snap.name, True))

    report.completed_at = time.time()
    return report
