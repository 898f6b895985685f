"""Replication commands: initial and incremental replication."""

import argparse
import logging
import time
from datetime import datetime

from .. import __util__
from ..config import Config, ConfigError
from ..core.replication import ReplicationResult, incremental_replicate, init_replicate
from .common import build_pair, build_zfs, load_runtime_config

logger = logging.getLogger(__name__)


def execute_init_repl(args: argparse.Namespace) -> int:
    """Execute the init_repl command.

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

    logger.info(__util__.log_heading(f"Initial replication at {time.ctime()}"))
    try:
        result = init_replicate(
            zfs,
            pair,
            now=datetime.now(),
            prune_markers=config.global_config.prune_markers,
        )
    except __util__.AbortError as e:
        logger.error("Initial replication %s failed: %s", pair, e)
        return 1

    _log_result(result)
    return 0


def execute_repl(args: argparse.Namespace) -> int:
    """Execute the repl command.

    Without SOURCE and DESTINATION every enabled configured replication is
    run in turn; a failing pair does not stop the following ones.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        config = load_runtime_config(args)
        pairs = _pairs_for(args, config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if not pairs:
        logger.error("No replication given and none configured")
        return 1

    zfs = build_zfs(config, args)

    logger.info(__util__.log_heading(f"Replication at {time.ctime()}"))
    errors = 0
    for pair in pairs:
        try:
            result = incremental_replicate(
                zfs,
                pair,
                now=datetime.now(),
                prune_markers=config.global_config.prune_markers,
            )
        except __util__.AbortError as e:
            logger.error("Replication %s failed: %s", pair, e)
            errors += 1
            continue
        _log_result(result)

    if errors > 0:
        logger.warning("Encountered %d error(s)", errors)
        return 1

    return 0


def _pairs_for(args: argparse.Namespace, config: Config) -> list:
    source = getattr(args, "source", None)
    destination = getattr(args, "destination", None)
    if source and destination:
        return [build_pair(source, destination, config, args)]
    if source or destination:
        raise ConfigError("SOURCE and DESTINATION must be given together")
    return [
        build_pair(r.source, r.destination, config, args)
        for r in config.get_enabled_replications()
    ]


def _log_result(result: ReplicationResult) -> None:
    logger.info(
        "%s: now at %s (%s, %.1fs)",
        result.pair,
        result.marker.label,
        f"incremental from {result.basis.label}" if result.basis else "full",
        result.duration,
    )
    for name, reason in result.prune_failures:
        logger.warning("Marker %s was not pruned: %s", name, reason)
