"""Dataset inventory: the read-only view of the storage layer.

Everything is queried fresh on each call; nothing is cached between
invocations. Snapshot labels are parsed into timestamps here so that the
rest of the engine never deals with the string encoding.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from .. import __util__
from .naming import SnapshotKind, parse_label_time, snapshot_kind, split_snapshot_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dataset:
    """A filesystem as seen by the storage layer."""

    name: str
    mounted: bool = False
    exists: bool = True

    @property
    def pool(self) -> str:
        return self.name.split("/", 1)[0]


@dataclass(frozen=True)
class Snapshot:
    """A snapshot with its label already parsed."""

    dataset: str
    label: str
    created_at: datetime | None
    kind: SnapshotKind

    @classmethod
    def from_name(cls, name: str) -> "Snapshot":
        dataset, label = split_snapshot_name(name)
        return cls(
            dataset=dataset,
            label=label,
            created_at=parse_label_time(label),
            kind=snapshot_kind(label),
        )

    @property
    def name(self) -> str:
        return f"{self.dataset}@{self.label}"

    def sort_key(self) -> tuple:
        """Order by embedded time, undated first, then by label."""
        return (self.created_at is not None, self.created_at or datetime.min, self.label)

    def __str__(self) -> str:
        return self.name


def list_datasets(zfs, roots=()) -> list[Dataset]:
    """List every filesystem under ``roots`` with its live mount state.

    Args:
        zfs: Storage layer
        roots: Datasets to descend from; empty means all pools

    Raises:
        InventoryError: If the storage layer cannot be queried
    """
    roots = list(roots)
    try:
        rows = zfs.list_filesystems(roots)
    except __util__.CommandError as e:
        where = ", ".join(roots) if roots else "all pools"
        raise __util__.InventoryError(f"Cannot list datasets of {where}: {e}") from e

    datasets = [Dataset(name=name, mounted=mounted) for name, mounted in rows]
    logger.debug("Inventory found %d dataset(s)", len(datasets))
    return datasets


def get_dataset(zfs, name: str) -> Dataset:
    """Look up a single dataset, reporting ``exists=False`` if it is missing.

    Raises:
        InventoryError: If the storage layer cannot be queried
    """
    try:
        if not zfs.dataset_exists(name):
            return Dataset(name=name, mounted=False, exists=False)
        mounted = zfs.is_mounted(name)
    except __util__.CommandError as e:
        raise __util__.InventoryError(f"Cannot query dataset {name}: {e}") from e
    return Dataset(name=name, mounted=mounted, exists=True)


def list_snapshots(zfs, dataset: str, recursive=False) -> list[Snapshot]:
    """List snapshots of a dataset, oldest first.

    Args:
        zfs: Storage layer
        dataset: Dataset whose snapshots to list
        recursive: Include snapshots of all descendant datasets

    Raises:
        InventoryError: If the storage layer cannot be queried
    """
    try:
        names = zfs.list_snapshot_names(dataset, recursive=recursive)
    except __util__.CommandError as e:
        raise __util__.InventoryError(
            f"Cannot list snapshots of {dataset}: {e}"
        ) from e

    snapshots = []
    for name in names:
        try:
            snapshots.append(Snapshot.from_name(name))
        except ValueError:
            logger.warning("Ignoring unexpected snapshot name: %r", name)
    snapshots.sort(key=Snapshot.sort_key)
    return snapshots
