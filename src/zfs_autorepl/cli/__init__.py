"""Command line interface for zfs-autorepl."""

from .dispatcher import main

__all__ = ["main"]
