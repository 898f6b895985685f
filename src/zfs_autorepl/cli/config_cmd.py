"""Config command: Check or generate the TOML configuration."""

import argparse
import logging
from pathlib import Path

from .. import __util__
from ..__logger__ import create_logger
from ..config import Config, ConfigError, find_config_file, load_config
from ..config.loader import CONFIG_PATHS, generate_example_config
from ..core.resolver import ReplicationPair
from .common import get_log_level

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(False, level=get_log_level(args))

    actions = {"validate": _validate_config, "init": _init_config}
    action = actions.get(getattr(args, "config_action", None))
    if action is None:
        print("Usage: zfs-autorepl config <validate|init>")
        return 1
    return action(args)


def _check_replications(config: Config) -> list[str]:
    """Print every configured pair and return the ones whose layout is invalid."""
    invalid = []
    for repl in config.replications:
        pair = ReplicationPair(repl.source, repl.destination)
        state = "enabled" if repl.enabled else "disabled"
        try:
            pair.validate()
        except __util__.StructureMismatch as e:
            print(f"  {pair} ({state}): INVALID, {e}")
            invalid.append(str(pair))
            continue
        print(f"  {pair} ({state})")
    return invalid


def _validate_config(args: argparse.Namespace) -> int:
    """Load the configuration and show what each command would use."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found. Searched:")
            for path in CONFIG_PATHS:
                print(f"  {path}")
            return 1
        config, warnings = load_config(config_path)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    print(f"Configuration: {config_path}")
    sudo = " (via sudo)" if config.global_config.use_sudo else ""
    print(f"zfs command: {config.global_config.zfs_command}{sudo}")
    print(f"send flags: -R {' '.join(config.global_config.send_flags)}")

    print("Snapshot retention:")
    for pool in config.pools:
        print(f"  {pool.name}: {pool.retention_hours:g}h")
    default = config.global_config.default_retention_hours
    if default is not None:
        print(f"  other pools: {default:g}h")

    print("Replications:")
    if not config.replications:
        print("  none")
    invalid = _check_replications(config)

    for warning in warnings:
        print(f"Warning: {warning}")

    if invalid:
        print(f"{len(invalid)} replication(s) cannot run: {', '.join(invalid)}")
        return 1
    print("Configuration is valid.")
    return 0


def _init_config(args: argparse.Namespace) -> int:
    """Print or write the example configuration."""
    content = generate_example_config()

    output = getattr(args, "output", None)
    if not output:
        print(content)
        return 0

    try:
        Path(output).write_text(content)
    except OSError as e:
        print(f"Error writing file: {e}")
        return 1
    print(f"Example configuration written to: {output}")
    return 0
