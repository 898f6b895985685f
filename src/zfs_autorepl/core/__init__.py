"""Core snapshot and replication engine for zfs-autorepl.

The modules are layered leaf-first: inventory and naming feed the
lifecycle manager and the replication resolver, which the replication
engine builds on.
"""

from .inventory import Dataset, Snapshot, get_dataset, list_datasets, list_snapshots
from .lifecycle import LifecycleReport, cleanup_pool, snapshot_all
from .replication import ReplicationResult, incremental_replicate, init_replicate
from .resolver import ReplicationPair, ReplicationState, ReplicationStatus, resolve

__all__ = [
    "Dataset",
    "Snapshot",
    "list_datasets",
    "get_dataset",
    "list_snapshots",
    "LifecycleReport",
    "snapshot_all",
    "cleanup_pool",
    "ReplicationPair",
    "ReplicationState",
    "ReplicationStatus",
    "resolve",
    "ReplicationResult",
    "init_replicate",
    "incremental_replicate",
]
