"""Advisory file locks keyed by target path.

A lock on ``/x/config.json`` is taken on the sidecar ``/x/config.json.lock``
so the target itself can be atomically replaced while the lock is held.

On POSIX the lock is ``fcntl.flock`` (exclusive).  On Windows it is
``msvcrt.locking`` on the first byte of the sidecar; the blocking form
polls the non-blocking form because ``LK_LOCK`` gives up after ten
seconds.  Both are real OS-level mutexes between processes, and between
threads that use separate ``FileLock`` instances.
"""

from __future__ import annotations

import errno
import logging
import sys
import time
from pathlib import Path
from typing import IO

from agentctl.errors import LockError

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"

_BUSY_ERRNOS = {errno.EACCES, errno.EAGAIN, errno.EDEADLK}


def lock_path_for(path: Path) -> Path:
    """Return the sidecar lock path for *path*."""
    path = Path(path)
    return path.with_name(path.name + LOCK_SUFFIX)


def _try_acquire(fh: IO[bytes]) -> bool:
    """One non-blocking attempt.  ``False`` means held elsewhere."""
    try:
        if sys.platform == "win32":
            fh.seek(0)
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as exc:
        if exc.errno in _BUSY_ERRNOS:
            return False
        raise
    return True


def _acquire_blocking(fh: IO[bytes], poll_interval: float) -> None:
    if sys.platform == "win32":
        while not _try_acquire(fh):
            time.sleep(poll_interval)
    else:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)


def _release(fh: IO[bytes]) -> None:
    if sys.platform == "win32":
        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


class FileLock:
    """Exclusive advisory lock on ``<path>.lock``.

    Use as a context manager for the blocking form::

        with FileLock(config_path):
            ...read, modify, write config_path...

    or call ``try_lock()`` to fail fast.  ``unlock()`` on a handle that
    is not locked is a no-op.

    Args:
        path: The file being protected (not the sidecar).
        poll_interval: Seconds between attempts where the platform has
            no native blocking lock.
    """

    def __init__(self, path: Path, poll_interval: float = 0.05) -> None:
        self.target = Path(path)
        self.path = lock_path_for(self.target)
        self.poll_interval = poll_interval
        self._fh: IO[bytes] | None = None

    @property
    def locked(self) -> bool:
        """``True`` while this handle holds the lock."""
        return self._fh is not None

    def _open(self) -> IO[bytes]:
        if self._fh is not None:
            raise LockError(f"{self.path} is already held by this handle")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            return open(self.path, "a+b")
        except OSError as exc:
            raise LockError(
                f"cannot open lock file {self.path}: {exc}"
            ) from exc

    def lock(self) -> None:
        """Block until the lock is acquired."""
        fh = self._open()
        try:
            _acquire_blocking(fh, self.poll_interval)
        except OSError as exc:
            fh.close()
            raise LockError(
                f"cannot acquire lock {self.path}: {exc}"
            ) from exc
        self._fh = fh
        logger.debug("Acquired lock %s", self.path)

    def try_lock(self) -> bool:
        """Try once to acquire the lock.

        Returns:
            ``True`` if acquired, ``False`` if another holder has it.

        Raises:
            LockError: Only for failures other than contention.
        """
        fh = self._open()
        try:
            acquired = _try_acquire(fh)
        except OSError as exc:
            fh.close()
            raise LockError(
                f"cannot acquire lock {self.path}: {exc}"
            ) from exc
        if not acquired:
            fh.close()
            logger.debug("Lock %s is busy", self.path)
            return False
        self._fh = fh
        logger.debug("Acquired lock %s", self.path)
        return True

    def unlock(self) -> None:
        """Release the lock.  No-op when not held."""
        fh = self._fh
        if fh is None:
            return
        self._fh = None
        try:
            _release(fh)
        except OSError as exc:
            raise LockError(
                f"cannot release lock {self.path}: {exc}"
            ) from exc
        finally:
            fh.close()
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> FileLock:
        self.lock()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unlock()
