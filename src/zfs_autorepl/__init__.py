"""zfs-autorepl: zfs_autorepl/__init__.py."""


__version__ = "0.3.0"


def relative_dataset(dataset: str, root: str) -> str | None:
    """Return the part of ``dataset`` below ``root``, or None if not under it.

    The root itself yields an empty string.
    """
    if dataset == root:
        return ""
    if dataset.startswith(root + "/"):
        return dataset[len(root) + 1 :]
    return None
