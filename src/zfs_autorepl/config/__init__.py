"""Configuration system for zfs-autorepl.

This module provides TOML-based configuration loading, validation,
and schema definitions for snapshot retention and replication.
"""

from .loader import ConfigError, find_config_file, load_config
from .schema import (
    Config,
    GlobalConfig,
    PoolConfig,
    ReplicationConfig,
)

__all__ = [
    "GlobalConfig",
    "PoolConfig",
    "ReplicationConfig",
    "Config",
    "load_config",
    "find_config_file",
    "ConfigError",
]
