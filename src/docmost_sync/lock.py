"""Advisory lock file preventing two exporters from sharing an output root."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, TextIO

# fcntl is POSIX only
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:  # pragma: no cover - non-POSIX platforms
    HAS_FCNTL = False

from docmost_sync.errors import LockError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_FILE = Path("/tmp/docmost-sync.lock")


class FileLock:
    """Exclusive, non-blocking ``flock`` on a file holding the owner's PID.

    The kernel drops the lock when the process dies, so a crashed exporter
    never blocks the next one.
    """

    def __init__(self, path: Path = DEFAULT_LOCK_FILE) -> None:
        self.path = path
        self._handle: Optional[TextIO] = None

    @property
    def locked(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        if self._handle is not None:
            return
        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as exc:
            raise LockError(f"failed to open lock file {self.path}: {exc}") from exc
        handle = os.fdopen(fd, "r+", encoding="ascii")

        if HAS_FCNTL:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError as exc:
                handle.close()
                raise LockError(
                    f"another instance is already running (lock file: {self.path})"
                ) from exc
        else:  # pragma: no cover - non-POSIX platforms
            logger.warning(
                "File locking not available on this platform. "
                "Concurrent exporters may corrupt the output directory."
            )

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        self._handle = handle
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            if HAS_FCNTL:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove lock file %s: %s", self.path, exc)
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
