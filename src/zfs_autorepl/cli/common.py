"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from ..__logger__ import create_logger
from ..config import Config, ConfigError, find_config_file, load_config
from ..core.resolver import ReplicationPair
from ..zfs import ZfsCli

logger = logging.getLogger(__name__)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    return parser


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_dry_run_arg(parser: argparse.ArgumentParser) -> None:
    """Add the dry run switch to a mutating command."""
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Log storage changes instead of making them",
    )


def add_root_args(parser: argparse.ArgumentParser) -> None:
    """Add the hierarchy roots a replication pair is validated against."""
    parser.add_argument(
        "--source-root",
        metavar="DATASET",
        help="Root of the source hierarchy (default: from config or SOURCE)",
    )
    parser.add_argument(
        "--destination-root",
        metavar="DATASET",
        help="Root of the destination hierarchy (default: from config or DESTINATION)",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_runtime_config(args: argparse.Namespace) -> Config:
    """Load the configuration, falling back to defaults when none exists.

    Also sets up logging, which depends on the configured log file.

    Raises:
        ConfigError: If an explicit or discovered config file is invalid
    """
    log_level = get_log_level(args)
    create_logger(False, level=log_level)

    config_path = find_config_file(getattr(args, "config", None))
    if config_path is None:
        logger.debug("No configuration file found, using defaults")
        return Config()

    logger.debug("Loading configuration from: %s", config_path)
    config, warnings = load_config(config_path)
    if config.global_config.log_file:
        create_logger(False, level=log_level, log_file=config.global_config.log_file)

    for warning in warnings:
        logger.warning("Config: %s", warning)

    return config


def build_zfs(config: Config, args: argparse.Namespace) -> ZfsCli:
    """Create the storage layer for a command."""
    return ZfsCli(
        zfs_command=config.global_config.zfs_command,
        use_sudo=config.global_config.use_sudo,
        dry_run=getattr(args, "dry_run", False),
        send_flags=config.global_config.send_flags,
    )


def build_pair(
    source: str, destination: str, config: Config, args: argparse.Namespace
) -> ReplicationPair:
    """Create a replication pair with the roots that apply to it.

    Explicit ``--source-root``/``--destination-root`` win, then a configured
    replication containing the source; otherwise the datasets are their own
    roots.

    Raises:
        ConfigError: If only one of the root options was given
    """
    source_root = getattr(args, "source_root", None)
    destination_root = getattr(args, "destination_root", None)
    if bool(source_root) != bool(destination_root):
        raise ConfigError("--source-root and --destination-root must be given together")

    if source_root is None:
        configured = config.find_replication(source)
        if configured is not None:
            source_root = configured.source
            destination_root = configured.destination

    return ReplicationPair(
        source=source,
        destination=destination,
        source_root=source_root,
        destination_root=destination_root,
    )
