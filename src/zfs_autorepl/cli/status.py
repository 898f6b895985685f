"""Status command: Show the replication state of a pair."""

import argparse
import logging

from .. import __util__
from ..config import ConfigError
from ..core.resolver import ReplicationStatus, resolve
from .common import build_pair, build_zfs, load_runtime_config

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Resolves the replication state without changing anything. A diverged
    pair is reported with a non-zero exit code.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        config = load_runtime_config(args)
        pair = build_pair(args.source, args.destination, config, args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    zfs = build_zfs(config, args)
    try:
        state = resolve(zfs, pair)
    except __util__.AbortError as e:
        logger.error("Cannot resolve %s: %s", pair, e)
        return 1

    source_root, destination_root = pair.roots
    print(f"Source:      {pair.source} (root {source_root})")
    print(f"Destination: {pair.destination} (root {destination_root})")
    print(f"State:       {state}")

    if state.status is ReplicationStatus.DIVERGED:
        print("")
        print("No common replication marker; the destination must be")
        print("re-created with init_repl or repaired by hand.")
        return 1

    return 0
