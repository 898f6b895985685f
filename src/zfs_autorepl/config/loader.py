"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from .. import relative_dataset
from .schema import (
    Config,
    GlobalConfig,
    PoolConfig,
    ReplicationConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "zfs-autorepl" / "config.toml",
    Path("/etc/zfs-autorepl/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _parse_hours(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}: retention must be a number of hours")
    return float(value)


def _parse_pool(data: dict[str, Any], global_config: GlobalConfig) -> PoolConfig:
    """Parse pool configuration from dict."""
    if "name" not in data:
        raise ConfigError("Pool missing required 'name' field")

    retention = data.get("retention_hours", global_config.default_retention_hours)
    if retention is None:
        raise ConfigError(
            f"Pool '{data['name']}' has no retention_hours and no global default"
        )

    return PoolConfig(
        name=data["name"],
        retention_hours=_parse_hours(retention, f"Pool '{data['name']}'"),
    )


def _parse_replication(data: dict[str, Any]) -> ReplicationConfig:
    """Parse replication configuration from dict."""
    for key in ("source", "destination"):
        if key not in data:
            raise ConfigError(f"Replication missing required '{key}' field")

    return ReplicationConfig(
        source=data["source"],
        destination=data["destination"],
        enabled=data.get("enabled", True),
    )


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    defaults = GlobalConfig()

    send_flags = data.get("send_flags", defaults.send_flags)
    if not isinstance(send_flags, list) or not all(
        isinstance(flag, str) for flag in send_flags
    ):
        raise ConfigError("global.send_flags must be a list of strings")

    default_retention = data.get("default_retention_hours")
    if default_retention is not None:
        default_retention = _parse_hours(default_retention, "global")

    return GlobalConfig(
        zfs_command=data.get("zfs_command", defaults.zfs_command),
        use_sudo=data.get("use_sudo", defaults.use_sudo),
        prune_markers=data.get("prune_markers", defaults.prune_markers),
        send_flags=send_flags,
        default_retention_hours=default_retention,
        log_file=data.get("log_file"),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    pool_names = [p.name for p in config.pools]
    if len(pool_names) != len(set(pool_names)):
        warnings.append("Duplicate pool entries detected")

    for pool in config.pools:
        if pool.retention_hours <= 0:
            warnings.append(
                f"Pool '{pool.name}' retention of {pool.retention_hours}h "
                "destroys every automatic snapshot"
            )

    for repl in config.replications:
        if relative_dataset(repl.destination, repl.source) is not None:
            warnings.append(
                f"Replication destination '{repl.destination}' lies inside "
                f"its source '{repl.source}'"
            )

    sources = [r.source for r in config.replications]
    if len(sources) != len(set(sources)):
        warnings.append(
            "Several replications share a source; marker pruning of one "
            "breaks the others (set prune_markers = false)"
        )

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    global_config = _parse_global(data.get("global", {}))
    pools = [_parse_pool(p, global_config) for p in data.get("pools", [])]
    replications = [_parse_replication(r) for r in data.get("replications", [])]

    config = Config(
        global_config=global_config, pools=pools, replications=replications
    )

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# zfs-autorepl configuration

[global]
zfs_command = "zfs"
use_sudo = false
# Remove superseded repl_ markers after each successful transfer
prune_markers = true
send_flags = ["-w", "-L"]
default_retention_hours = 72
# log_file = "/var/log/zfs-autorepl.log"

# Fast pool keeps automatic snapshots for a day
[[pools]]
name = "nvme"
retention_hours = 24

# Backup pool keeps them for a month
[[pools]]
name = "tank"
retention_hours = 720

# Mirror nvme into tank/repl/nvme
[[replications]]
source = "nvme"
destination = "tank/repl/nvme"
"""
