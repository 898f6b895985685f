# pyright: standard

"""zfs-autorepl: zfs_autorepl/__util__.py
Common utility code shared between modules.
"""

import logging
import subprocess

logger = logging.getLogger(__name__)


class AbortError(Exception):
    """Exception where the current command must be aborted."""

    pass


class CommandError(AbortError):
    """A storage layer command exited unsuccessfully."""

    def __init__(self, command, returncode, stderr="") -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"{' '.join(self.command)} exited with {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class InventoryError(AbortError):
    """The storage layer could not be queried."""

    pass


class StructureMismatch(AbortError):
    """Destination path does not mirror the source path under the given roots."""

    pass


class AlreadyInitialized(AbortError):
    """Initial replication requested for a destination that already exists."""

    pass


class NotInitialized(AbortError):
    """Incremental replication requested before an initial replication."""

    pass


class DivergedState(AbortError):
    """Source and destination share no common replication marker."""

    pass


class TransferFailure(AbortError):
    """A send/receive transfer failed; safe to retry on the next run."""

    pass


class PartialOperationFailure(AbortError):
    """One or more items of a batch operation failed.

    The batch itself ran to completion; ``failures`` holds a
    ``(item, reason)`` tuple for every item that failed.
    """

    def __init__(self, operation: str, failures) -> None:
        self.operation = operation
        self.failures = list(failures)
        names = ", ".join(item for item, _ in self.failures)
        super().__init__(f"{operation} failed for {len(self.failures)} item(s): {names}")


def exec_subprocess(command, method="run", check=True, **kwargs):
    """Run a command via ``subprocess`` and translate failures.

    ``method`` selects the ``subprocess`` function to use. ``run`` captures
    text output and raises :class:`CommandError` on a non-zero exit when
    ``check`` is set; ``Popen`` returns the started process.
    """
    logger.debug("Executing: %s", command)
    try:
        if method == "Popen":
            return subprocess.Popen(command, **kwargs)
        kwargs.setdefault("capture_output", True)
        kwargs.setdefault("text", True)
        result = subprocess.run(command, check=False, **kwargs)
    except OSError as e:
        logger.error("Failed to execute %s: %s", command, e)
        raise CommandError(command, -1, str(e)) from e

    if check and result.returncode != 0:
        raise CommandError(command, result.returncode, result.stderr)
    return result


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"{f'--[ {caption} ]':-<50}"
