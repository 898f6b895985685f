"""List command: Show snapshots of a pool."""

import argparse
import json
import logging

from .. import __util__
from ..config import ConfigError
from ..core.inventory import list_snapshots
from .common import build_zfs, load_runtime_config

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list_snapshots command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        config = load_runtime_config(args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    zfs = build_zfs(config, args)
    try:
        snapshots = list_snapshots(zfs, args.pool, recursive=True)
    except __util__.InventoryError as e:
        logger.error("%s", e)
        return 1

    if getattr(args, "json", False):
        print(
            json.dumps(
                [
                    {
                        "name": s.name,
                        "dataset": s.dataset,
                        "label": s.label,
                        "kind": s.kind.value,
                        "created_at": s.created_at.isoformat() if s.created_at else None,
                    }
                    for s in snapshots
                ],
                indent=2,
            )
        )
        return 0

    for snap in snapshots:
        created = snap.created_at.strftime("%Y-%m-%d %H:%M:%S") if snap.created_at else "-"
        print(f"{snap.kind.value:<10} {created:<20} {snap.name}")

    return 0
