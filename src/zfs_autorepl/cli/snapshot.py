"""Snapshot command: Snapshot every mounted dataset."""

import argparse
import logging
import time
from datetime import datetime

from .. import __util__
from ..config import ConfigError
from ..core.lifecycle import snapshot_all
from .common import build_zfs, load_runtime_config

logger = logging.getLogger(__name__)


def execute_snapshot(args: argparse.Namespace) -> int:
    """Execute the snapshot command.

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
    roots = getattr(args, "filesystems", None) or []

    logger.info(__util__.log_heading(f"Snapshot at {time.ctime()}"))
    try:
        report = snapshot_all(zfs, roots, now=datetime.now())
    except __util__.AbortError as e:
        logger.error("Snapshot aborted: %s", e)
        return 1

    logger.info(
        "Created %d snapshot(s), skipped %d unmounted dataset(s)",
        len(report.succeeded),
        len(report.skipped),
    )

    try:
        report.raise_for_failures()
    except __util__.PartialOperationFailure as e:
        logger.error("%s", e)
        return 1

    return 0
