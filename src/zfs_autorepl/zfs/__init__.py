# pyright: standard

"""zfs-autorepl: zfs_autorepl/zfs/__init__.py."""

from .cli import DEFAULT_SEND_FLAGS, RECEIVE_PROPERTIES, ZfsCli

__all__ = ["ZfsCli", "DEFAULT_SEND_FLAGS", "RECEIVE_PROPERTIES"]
