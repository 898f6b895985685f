# pyright: standard

"""zfs-autorepl: zfs_autorepl/zfs/cli.py
Run storage operations through the zfs command line tool.
"""

import logging
import os
import subprocess
import tempfile

from .. import __util__

logger = logging.getLogger(__name__)

DEFAULT_SEND_FLAGS = ("-w", "-L")
# Properties applied while receiving; re-asserted after every transfer.
RECEIVE_PROPERTIES = (("mountpoint", "none"), ("readonly", "on"))


class ZfsCli:
    """Storage layer backed by the ``zfs`` executable.

    Every mutating method honours ``dry_run`` by logging the command it
    would have executed instead of running it.
    """

    def __init__(
        self,
        zfs_command="zfs",
        use_sudo=False,
        dry_run=False,
        send_flags=DEFAULT_SEND_FLAGS,
    ) -> None:
        self.zfs_command = zfs_command
        self.use_sudo = use_sudo
        self.dry_run = dry_run
        self.send_flags = list(send_flags)

    def __repr__(self) -> str:
        return f"ZfsCli({self.zfs_command!r}, dry_run={self.dry_run})"

    # Queries

    def list_filesystems(self, roots=()) -> list[tuple[str, bool]]:
        """Return ``(name, mounted)`` for every filesystem under ``roots``.

        No roots lists the filesystems of all imported pools.
        """
        cmd = self._build_list_filesystems_cmd(roots)
        result = self._exec_command(cmd)
        filesystems = []
        for line in result.stdout.splitlines():
            fields = line.split("\t")
            if len(fields) < 2 or not fields[0]:
                continue
            filesystems.append((fields[0], fields[1].strip() == "yes"))
        return filesystems

    def dataset_exists(self, name: str) -> bool:
        """Check whether a dataset exists."""
        cmd = self._build_command(["list", "-H", "-o", "name", name])
        result = self._exec_command(cmd, check=False)
        if result.returncode == 0:
            return True
        if "does not exist" in (result.stderr or ""):
            return False
        raise __util__.CommandError(cmd, result.returncode, result.stderr)

    def is_mounted(self, name: str) -> bool:
        """Query the live mount state of a filesystem."""
        cmd = self._build_command(["get", "-H", "-p", "-o", "value", "mounted", name])
        result = self._exec_command(cmd)
        return result.stdout.strip() == "yes"

    def list_snapshot_names(self, dataset: str, recursive=False) -> list[str]:
        """Return full ``dataset@label`` names of snapshots.

        Without ``recursive`` only the dataset's own snapshots are listed.
        """
        cmd = self._build_list_snapshots_cmd(dataset, recursive=recursive)
        result = self._exec_command(cmd)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    # Mutations

    def create_snapshot(self, name: str, recursive=False) -> None:
        cmd = ["snapshot"]
        if recursive:
            cmd.append("-r")
        cmd.append(name)
        self._exec_mutation(self._build_command(cmd))

    def destroy_snapshot(self, name: str, recursive=False) -> None:
        if "@" not in name:
            # zfs destroy would remove the dataset itself
            raise ValueError(f"Refusing to destroy non-snapshot {name!r}")
        cmd = ["destroy"]
        if recursive:
            cmd.append("-r")
        cmd.append(name)
        self._exec_mutation(self._build_command(cmd))

    def set_property(self, dataset: str, prop: str, value: str) -> None:
        self._exec_mutation(self._build_command(["set", f"{prop}={value}", dataset]))

    def unmount(self, dataset: str) -> None:
        self._exec_mutation(self._build_command(["unmount", dataset]))

    def send_receive(self, snapshot: str, destination: str, base=None) -> None:
        """Pipe a replication stream of ``snapshot`` into ``destination``.

        With ``base`` the stream is incremental and includes every
        intermediate snapshot between ``base`` and ``snapshot``.

        Raises:
            CommandError: If either side of the pipe fails
        """
        send_cmd = self._build_send_cmd(snapshot, base=base)
        recv_cmd = self._build_receive_cmd(destination)
        if self.dry_run:
            logger.info(
                "dry run: %s | %s", " ".join(send_cmd), " ".join(recv_cmd)
            )
            return

        logger.debug("Pipe: %s | %s", send_cmd, recv_cmd)
        # send -v reports progress on stderr; a file never fills up like a pipe
        with tempfile.TemporaryFile() as send_errors:
            send_process = __util__.exec_subprocess(
                send_cmd,
                method="Popen",
                stdout=subprocess.PIPE,
                stderr=send_errors,
            )
            try:
                receive_process = __util__.exec_subprocess(
                    recv_cmd,
                    method="Popen",
                    stdin=send_process.stdout,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                    text=True,
                )
            except __util__.CommandError:
                send_process.kill()
                send_process.wait()
                raise
            # Let send see SIGPIPE if receive exits early
            if send_process.stdout is not None:
                send_process.stdout.close()

            _, receive_stderr = receive_process.communicate()
            return_code_send = send_process.wait()
            return_code_receive = receive_process.returncode
            send_errors.seek(0)
            send_stderr = send_errors.read()

        logger.debug(
            "Send exited with %d, receive exited with %d",
            return_code_send,
            return_code_receive,
        )

        if return_code_receive != 0:
            raise __util__.CommandError(recv_cmd, return_code_receive, receive_stderr)
        if return_code_send != 0:
            raise __util__.CommandError(
                send_cmd,
                return_code_send,
                send_stderr.decode(errors="replace"),
            )

    # Command builders

    def _build_command(self, args) -> list[str]:
        cmd = [self.zfs_command, *args]
        if self.use_sudo and os.geteuid() != 0:
            cmd = ["sudo", "-n"] + cmd
        return cmd

    def _build_list_filesystems_cmd(self, roots=()) -> list[str]:
        args = ["list", "-H", "-p", "-t", "filesystem", "-o", "name,mounted"]
        if roots:
            args += ["-r", *roots]
        return self._build_command(args)

    def _build_list_snapshots_cmd(self, dataset: str, recursive=False) -> list[str]:
        args = ["list", "-H", "-p", "-t", "snapshot", "-o", "name", "-s", "name"]
        args += ["-r"] if recursive else ["-d", "1"]
        args.append(dataset)
        return self._build_command(args)

    def _build_send_cmd(self, snapshot: str, base=None) -> list[str]:
        args = ["send", "-R", *self.send_flags]
        if base:
            args += ["-I", base]
        args.append(snapshot)
        return self._build_command(args)

    def _build_receive_cmd(self, destination: str) -> list[str]:
        args = ["receive"]
        for prop, value in RECEIVE_PROPERTIES:
            args += ["-o", f"{prop}={value}"]
        args.append(destination)
        return self._build_command(args)

    # Execution

    def _exec_command(self, cmd, check=True):
        return __util__.exec_subprocess(cmd, check=check)

    def _exec_mutation(self, cmd) -> None:
        if self.dry_run:
            logger.info("dry run: %s", " ".join(cmd))
            return
        logger.debug("Running: %s", " ".join(cmd))
        self._exec_command(cmd)
