"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..zfs.cli import DEFAULT_SEND_FLAGS


@dataclass
class PoolConfig:
    """Per-pool snapshot retention.

    Attributes:
        name: Pool (or dataset) whose automatic snapshots are cleaned up
        retention_hours: Age after which automatic snapshots are destroyed
    """

    name: str
    retention_hours: float = 72


@dataclass
class ReplicationConfig:
    """A replicated hierarchy.

    Attributes:
        source: Root dataset of the source hierarchy
        destination: Root dataset of the mirrored hierarchy
        enabled: Whether ``repl`` without arguments processes this pair
    """

    source: str
    destination: str
    enabled: bool = True


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        zfs_command: Path or name of the zfs executable
        use_sudo: Prefix zfs commands with sudo when not running as root
        prune_markers: Remove superseded replication markers after a transfer
        send_flags: Extra flags for ``zfs send`` besides ``-R``
        default_retention_hours: Retention for pools without their own entry
        log_file: Path to log file (None for no file logging)
    """

    zfs_command: str = "zfs"
    use_sudo: bool = False
    prune_markers: bool = True
    send_flags: list[str] = field(default_factory=lambda: list(DEFAULT_SEND_FLAGS))
    default_retention_hours: Optional[float] = None
    log_file: Optional[str] = None


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        global_config: Global settings
        pools: Per-pool retention settings
        replications: Configured replication pairs
    """

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    pools: list[PoolConfig] = field(default_factory=list)
    replications: list[ReplicationConfig] = field(default_factory=list)

    def get_retention_hours(self, pool: str) -> Optional[float]:
        """Get the effective retention for a pool.

        A pool entry overrides the global default.
        """
        for pool_config in self.pools:
            if pool_config.name == pool:
                return pool_config.retention_hours
        return self.global_config.default_retention_hours

    def get_enabled_replications(self) -> list[ReplicationConfig]:
        """Get list of enabled replication pairs."""
        return [r for r in self.replications if r.enabled]

    def find_replication(self, source: str) -> Optional[ReplicationConfig]:
        """Find the configured replication whose source hierarchy holds ``source``."""
        matches = [
            r
            for r in self.replications
            if source == r.source or source.startswith(r.source + "/")
        ]
        if not matches:
            return None
        # Most specific root wins
        return max(matches, key=lambda r: len(r.source))
