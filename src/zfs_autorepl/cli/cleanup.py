"""Snapshot cleanup command: Destroy expired automatic snapshots of a pool."""

import argparse
import logging
import time
from datetime import datetime

from .. import __util__
from ..config import ConfigError
from ..core.lifecycle import cleanup_pool
from .common import build_zfs, load_runtime_config

logger = logging.getLogger(__name__)


def execute_cleanup(args: argparse.Namespace) -> int:
    """Execute the snapshot_cleanup command.

    Held or cloned snapshots that cannot be destroyed are reported but do
    not make the command fail.

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

    pool = args.pool
    retention_hours = getattr(args, "retention_hours", None)
    if retention_hours is None:
        retention_hours = config.get_retention_hours(pool)
    if retention_hours is None:
        logger.error(
            "No retention given for %s and none configured; pass RETENTION_HOURS",
            pool,
        )
        return 1
    if retention_hours < 0:
        logger.error("Retention must not be negative: %s", retention_hours)
        return 1

    zfs = build_zfs(config, args)

    logger.info(__util__.log_heading(f"Cleaning {pool} at {time.ctime()}"))
    try:
        report = cleanup_pool(zfs, pool, retention_hours, now=datetime.now())
    except __util__.AbortError as e:
        logger.error("Cleanup of %s aborted: %s", pool, e)
        return 1

    logger.info(
        "Destroyed %d snapshot(s), kept %d",
        len(report.succeeded),
        len(report.skipped),
    )
    for result in report.busy:
        logger.warning("Still held or cloned: %s", result.target)

    try:
        report.raise_for_failures()
    except __util__.PartialOperationFailure as e:
        logger.error("%s", e)
        return 1

    return 0
