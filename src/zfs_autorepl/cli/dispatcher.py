"""CLI dispatcher.

Builds the subcommand parser and routes parsed arguments to the command
handlers. Command modules are imported lazily by their handlers.
"""

import argparse
import sys
from typing import Callable

from .common import add_dry_run_arg, add_root_args, add_verbosity_args


def _non_negative_hours(value: str) -> float:
    try:
        hours = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of hours: {value!r}")
    if hours < 0:
        raise argparse.ArgumentTypeError("retention must not be negative")
    return hours


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="zfs-autorepl",
        description="Automatic ZFS snapshots, retention and local replication",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # snapshot command
    snapshot_parser = subparsers.add_parser(
        "snapshot",
        help="Snapshot all mounted filesystems",
        description="Create an auto_ snapshot on every mounted filesystem "
        "below the given roots (all pools if none are given)",
    )
    snapshot_parser.add_argument(
        "filesystems",
        nargs="*",
        metavar="FILESYSTEM",
        help="Root filesystem(s) to descend from",
    )
    add_dry_run_arg(snapshot_parser)

    # snapshot_cleanup command
    cleanup_parser = subparsers.add_parser(
        "snapshot_cleanup",
        help="Destroy expired automatic snapshots of a pool",
        description="Destroy auto_ snapshots below POOL older than the retention",
    )
    cleanup_parser.add_argument("pool", metavar="POOL", help="Pool to clean up")
    cleanup_parser.add_argument(
        "retention_hours",
        metavar="RETENTION_HOURS",
        nargs="?",
        type=_non_negative_hours,
        help="Keep automatic snapshots this many hours (default: from config)",
    )
    add_dry_run_arg(cleanup_parser)

    # init_repl command
    init_parser = subparsers.add_parser(
        "init_repl",
        help="Start replicating a filesystem hierarchy",
        description="Send the full SOURCE hierarchy into DESTINATION, "
        "which must not exist yet",
    )
    init_parser.add_argument("source", metavar="SOURCE")
    init_parser.add_argument("destination", metavar="DESTINATION")
    add_root_args(init_parser)
    add_dry_run_arg(init_parser)

    # repl command
    repl_parser = subparsers.add_parser(
        "repl",
        help="Incrementally replicate a filesystem hierarchy",
        description="Send changes since the latest common replication marker. "
        "Without arguments all configured replications are run.",
    )
    repl_parser.add_argument("source", metavar="SOURCE", nargs="?")
    repl_parser.add_argument("destination", metavar="DESTINATION", nargs="?")
    add_root_args(repl_parser)
    add_dry_run_arg(repl_parser)

    # list_snapshots command
    list_parser = subparsers.add_parser(
        "list_snapshots",
        help="Show snapshots of a pool",
        description="List all snapshots below POOL with their kind and time",
    )
    list_parser.add_argument("pool", metavar="POOL")
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show the replication state of a pair",
        description="Resolve the replication state without changing anything",
    )
    status_parser.add_argument("source", metavar="SOURCE")
    status_parser.add_argument("destination", metavar="DESTINATION")
    add_root_args(status_parser)

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_config_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_config_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"zfs-autorepl {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "snapshot": cmd_snapshot,
        "snapshot_cleanup": cmd_snapshot_cleanup,
        "init_repl": cmd_init_repl,
        "repl": cmd_repl,
        "list_snapshots": cmd_list,
        "status": cmd_status,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_snapshot(args: argparse.Namespace) -> int:
    """Execute snapshot command."""
    from .snapshot import execute_snapshot

    return execute_snapshot(args)


def cmd_snapshot_cleanup(args: argparse.Namespace) -> int:
    """Execute snapshot_cleanup command."""
    from .cleanup import execute_cleanup

    return execute_cleanup(args)


def cmd_init_repl(args: argparse.Namespace) -> int:
    """Execute init_repl command."""
    from .replicate import execute_init_repl

    return execute_init_repl(args)


def cmd_repl(args: argparse.Namespace) -> int:
    """Execute repl command."""
    from .replicate import execute_repl

    return execute_repl(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list_snapshots command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_status(args: argparse.Namespace) -> int:
    """Execute status command."""
    from .status import execute_status

    return execute_status(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for zfs-autorepl CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
