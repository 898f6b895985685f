"""Snapshot naming convention and retention policy.

Automatic snapshots and replication markers carry their creation time in
the label, e.g. ``auto_2026_01_31_23_00_05`` and ``repl_2026_01_31_23_00_05``,
so their age can be derived from the name alone. All functions here are pure;
the current time is always passed in by the caller as a naive local
``datetime``.
"""

import enum
from datetime import datetime, timedelta

AUTO_PREFIX = "auto_"
MARKER_PREFIX = "repl_"
TIMESTAMP_FORMAT = "%Y_%m_%d_%H_%M_%S"


class SnapshotKind(enum.Enum):
    """Who a snapshot belongs to, derived from its label."""

    AUTOMATIC = "automatic"
    MARKER = "marker"
    FOREIGN = "foreign"  # created outside this tool


def _local(now: datetime) -> datetime:
    """Convert ``now`` to the naive local wall-clock time labels encode.

    Labels carry no UTC offset. When the clock falls back at the end of
    daylight saving time, the repeated hour produces labels equal to or
    older than ones taken just before, and ages computed across the change
    are off by that hour. A new marker that would not sort after the
    replication basis is refused rather than created.
    """
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def automatic_label(now: datetime) -> str:
    """Label for an automatic snapshot taken at ``now``."""
    return AUTO_PREFIX + _local(now).strftime(TIMESTAMP_FORMAT)


def marker_label(now: datetime) -> str:
    """Label for a replication marker taken at ``now``."""
    return MARKER_PREFIX + _local(now).strftime(TIMESTAMP_FORMAT)


def is_automatic(label: str) -> bool:
    return label.startswith(AUTO_PREFIX)


def is_marker(label: str) -> bool:
    return label.startswith(MARKER_PREFIX)


def snapshot_kind(label: str) -> SnapshotKind:
    if is_automatic(label):
        return SnapshotKind.AUTOMATIC
    if is_marker(label):
        return SnapshotKind.MARKER
    return SnapshotKind.FOREIGN


def parse_label_time(label: str) -> datetime | None:
    """Return the timestamp embedded in an automatic or marker label.

    Returns None for foreign labels and for labels whose timestamp part
    cannot be parsed.
    """
    for prefix in (AUTO_PREFIX, MARKER_PREFIX):
        if label.startswith(prefix):
            try:
                return datetime.strptime(label[len(prefix) :], TIMESTAMP_FORMAT)
            except ValueError:
                return None
    return None


def is_expired(label: str, retention_hours: float, now: datetime) -> bool:
    """Check whether an automatic snapshot is older than the retention period.

    A label that looks automatic but carries an unparseable timestamp counts
    as expired. Non-automatic labels never expire.
    """
    if not is_automatic(label):
        return False
    created = parse_label_time(label)
    if created is None:
        return True
    return _local(now) - created > timedelta(hours=retention_hours)


def split_snapshot_name(name: str) -> tuple[str, str]:
    """Split ``pool/fs@label`` into ``("pool/fs", "label")``."""
    dataset, sep, label = name.partition("@")
    if not sep or not dataset or not label:
        raise ValueError(f"Not a snapshot name: {name!r}")
    return dataset, label
