"""Pytest configuration and shared fixtures."""

import logging

import pytest

from zfs_autorepl.__util__ import CommandError


class FakeZfs:
    """In-memory storage layer with the same interface as ZfsCli.

    Datasets hold a ``data`` string standing in for their content; a
    snapshot records the data at the time it was taken. Snapshots keep
    creation order per dataset, like zfs does.
    """

    def __init__(self) -> None:
        self.dry_run = False
        self.datasets: dict[str, dict] = {}
        self.snapshots: dict[str, dict[str, str]] = {}
        self.calls: list[tuple] = []
        self.fail_list = False
        self.fail_send = False
        self.fail_create: set[str] = set()
        self.fail_destroy: dict[str, str] = {}
        self.fail_set_property = False
        # Simulate a receive that mounts the new datasets anyway
        self.mount_on_receive = False

    # Test helpers

    def add_dataset(self, name, mounted=True, data="", exists_ok=False):
        if name in self.datasets and not exists_ok:
            raise AssertionError(f"{name} already added")
        self.datasets[name] = {"mounted": mounted, "data": data, "props": {}}
        self.snapshots.setdefault(name, {})
        return name

    def add_snapshot(self, name):
        dataset, label = name.split("@")
        self.snapshots[dataset][label] = self.datasets[dataset]["data"]

    def write(self, dataset, data):
        self.datasets[dataset]["data"] = data

    def labels(self, dataset):
        return list(self.snapshots[dataset])

    def _subtree(self, root):
        return sorted(
            name
            for name in self.datasets
            if name == root or name.startswith(root + "/")
        )

    def _missing(self, name):
        return CommandError(
            ["zfs", "list", name], 1, f"cannot open '{name}': dataset does not exist"
        )

    # Queries

    def list_filesystems(self, roots=()):
        self.calls.append(("list_filesystems", tuple(roots)))
        if self.fail_list:
            raise CommandError(["zfs", "list"], 1, "failed to initialize ZFS library")
        names = set()
        if roots:
            for root in roots:
                if root not in self.datasets:
                    raise self._missing(root)
                names.update(self._subtree(root))
        else:
            names.update(self.datasets)
        return [(name, self.datasets[name]["mounted"]) for name in sorted(names)]

    def dataset_exists(self, name):
        if self.fail_list:
            raise CommandError(["zfs", "list"], 1, "failed to initialize ZFS library")
        return name in self.datasets

    def is_mounted(self, name):
        if name not in self.datasets:
            raise self._missing(name)
        return self.datasets[name]["mounted"]

    def list_snapshot_names(self, dataset, recursive=False):
        self.calls.append(("list_snapshot_names", dataset, recursive))
        if self.fail_list:
            raise CommandError(["zfs", "list"], 1, "failed to initialize ZFS library")
        if dataset not in self.datasets:
            raise self._missing(dataset)
        scope = self._subtree(dataset) if recursive else [dataset]
        return sorted(f"{ds}@{label}" for ds in scope for label in self.snapshots[ds])

    # Mutations

    def create_snapshot(self, name, recursive=False):
        self.calls.append(("create_snapshot", name, recursive))
        if self.dry_run:
            return
        if name in self.fail_create:
            raise CommandError(["zfs", "snapshot", name], 1, "out of space")
        dataset, label = name.split("@")
        if dataset not in self.datasets:
            raise self._missing(dataset)
        if label in self.snapshots[dataset]:
            raise CommandError(
                ["zfs", "snapshot", name], 1, "dataset already exists"
            )
        for ds in self._subtree(dataset) if recursive else [dataset]:
            self.snapshots[ds][label] = self.datasets[ds]["data"]

    def destroy_snapshot(self, name, recursive=False):
        self.calls.append(("destroy_snapshot", name, recursive))
        if self.dry_run:
            return
        if name in self.fail_destroy:
            raise CommandError(["zfs", "destroy", name], 1, self.fail_destroy[name])
        dataset, label = name.split("@")
        if label not in self.snapshots.get(dataset, {}):
            raise CommandError(
                ["zfs", "destroy", name], 1, "could not find any snapshots to destroy"
            )
        for ds in self._subtree(dataset) if recursive else [dataset]:
            self.snapshots[ds].pop(label, None)

    def set_property(self, dataset, prop, value):
        self.calls.append(("set_property", dataset, prop, value))
        if self.fail_set_property:
            raise CommandError(["zfs", "set"], 1, "permission denied")
        self.datasets[dataset]["props"][prop] = value
        if prop == "mountpoint" and value == "none":
            self.datasets[dataset]["mounted"] = False

    def unmount(self, dataset):
        self.calls.append(("unmount", dataset))
        self.datasets[dataset]["mounted"] = False

    def send_receive(self, snapshot, destination, base=None):
        self.calls.append(("send_receive", snapshot, destination, base))
        if self.dry_run:
            return
        if self.fail_send:
            raise CommandError(["zfs", "receive", destination], 1, "broken pipe")

        source, label = snapshot.split("@")
        base_label = base.split("@")[1] if base else None
        if base_label is None and destination in self.datasets:
            raise CommandError(
                ["zfs", "receive", destination], 1, "destination exists"
            )
        if base_label is not None and base_label not in self.snapshots.get(
            destination, {}
        ):
            raise CommandError(
                ["zfs", "receive", destination], 1, "incremental source does not exist"
            )

        for src_ds in self._subtree(source):
            if label not in self.snapshots[src_ds]:
                continue
            dest_ds = destination + src_ds[len(source) :]
            if dest_ds not in self.datasets:
                self.add_dataset(dest_ds, mounted=self.mount_on_receive)
                if not self.mount_on_receive:
                    self.datasets[dest_ds]["props"].update(
                        {"mountpoint": "none", "readonly": "on"}
                    )
            labels = list(self.snapshots[src_ds])
            end = labels.index(label)
            start = 0
            if base_label is not None and base_label in labels:
                start = labels.index(base_label) + 1
            for each in labels[start : end + 1]:
                self.snapshots[dest_ds].setdefault(each, self.snapshots[src_ds][each])
            self.datasets[dest_ds]["data"] = self.snapshots[src_ds][label]
            if self.mount_on_receive:
                self.datasets[dest_ds]["mounted"] = True


@pytest.fixture
def fake_zfs():
    """Storage layer with pools ``nvme`` (mounted) and ``tank`` with ``tank/repl``."""
    zfs = FakeZfs()
    zfs.add_dataset("nvme", mounted=True, data="nvme-v1")
    zfs.add_dataset("nvme/home", mounted=True, data="home-v1")
    zfs.add_dataset("tank", mounted=True, data="tank-v1")
    zfs.add_dataset("tank/repl", mounted=True, data="")
    return zfs


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
zfs_command = "/usr/sbin/zfs"
use_sudo = true
prune_markers = false
send_flags = ["-w"]
default_retention_hours = 48

[[pools]]
name = "nvme"
retention_hours = 24

[[pools]]
name = "tank"
retention_hours = 720

[[replications]]
source = "nvme"
destination = "tank/repl/nvme"

[[replications]]
source = "ssd"
destination = "tank/repl/ssd"
enabled = false
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[[replications]]
source = "nvme"
destination = "tank/repl/nvme"
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture(autouse=True)
def reset_logger():
    """Detach handlers a command installed on the package logger."""
    yield
    logger = logging.getLogger("zfs_autorepl")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
