"""File handler module: encoding-aware reads, atomic writes, and backups.

Provides the crash-safe file I/O every adapter persists through.

Key design choices:

* **Atomic writes** -- ``atomic_write()`` writes to a temp file in the
  target's own directory, fsyncs it, then calls ``os.replace()`` so
  readers never see partial data.  The temp file is removed on any
  failure before the rename.
* **Two backup shapes** -- ``<path>.bak`` (single slot, overwritten) and
  ``<stem>.bak.<timestamp><suffix>`` (rotating series).  The timestamp
  format sorts lexicographically, so rotation is a plain ``sorted()``.
* **Backup before write, rotate after** -- ``safe_write()`` composes the
  three steps.  A rotation failure after a successful write is logged,
  never raised: the new content is already in place.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import stat
import tempfile
from datetime import datetime
from pathlib import Path

from charset_normalizer import from_bytes

from agentctl.locking import FileLock

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_COUNT = 3
BACKUP_SUFFIX = ".bak"
DEFAULT_FILE_MODE = 0o644

_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S.%f"
_TIMESTAMP_RE = r"\d{8}-\d{6}\.\d{6}(?:_\d{3})?"


# =============================================================================
# Reading
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    try:
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        # Detection failed, fall back to utf-8
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # Normalize ascii to utf-8 (ascii is a strict subset of utf-8)
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def read_bytes_if_exists(path: Path) -> bytes | None:
    """Return the bytes of *path*, or ``None`` if it does not exist."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


# =============================================================================
# Atomic write
# =============================================================================


def atomic_write(
    path: Path, data: bytes, perm: int | None = None
) -> None:
    """Write *data* to *path* so that no reader ever sees a torn file.

    The temp file is created in ``path.parent`` because ``os.replace()``
    is only atomic within one filesystem.

    Args:
        path: Destination file.  Parent directories are created.
        data: Complete new file content.
        perm: Permission bits for the result.  ``None`` keeps the mode of
            an existing file, or uses ``0o644`` for a new one.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if perm is None:
        try:
            perm = stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            perm = DEFAULT_FILE_MODE

    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=".tmp-", suffix=path.suffix
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, perm)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


# =============================================================================
# Backups
# =============================================================================


def _backup_pattern(path: Path) -> re.Pattern[str]:
    """Match ``<stem>.bak.<timestamp><suffix>`` siblings of *path*."""
    return re.compile(
        re.escape(path.stem + BACKUP_SUFFIX + ".")
        + f"({_TIMESTAMP_RE})"
        + re.escape(path.suffix)
    )


def _timestamped_backups(path: Path) -> list[Path]:
    """Timestamped backups of *path*, oldest first."""
    pattern = _backup_pattern(path)
    try:
        names = os.listdir(path.parent)
    except FileNotFoundError:
        return []
    return [
        path.parent / name
        for name in sorted(names)
        if pattern.fullmatch(name)
    ]


def copy_file(src: Path, dst: Path) -> None:
    """Copy bytes and permission bits from *src* to *dst*."""
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)


def create_backup(path: Path) -> Path | None:
    """Copy *path* to a new timestamped sibling.

    Returns:
        The backup path, or ``None`` when *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        return None

    timestamp = datetime.now().strftime(_TIMESTAMP_FORMAT)
    backup = path.with_name(
        f"{path.stem}{BACKUP_SUFFIX}.{timestamp}{path.suffix}"
    )
    # Two backups inside one microsecond: add a sortable tiebreak
    counter = 1
    while backup.exists():
        backup = path.with_name(
            f"{path.stem}{BACKUP_SUFFIX}.{timestamp}_{counter:03d}"
            f"{path.suffix}"
        )
        counter += 1

    copy_file(path, backup)
    logger.debug("Backed up %s to %s", path, backup)
    return backup


def create_simple_backup(path: Path) -> Path | None:
    """Copy *path* to ``<path>.bak``, replacing any previous one.

    Returns:
        The backup path, or ``None`` when *path* does not exist.
    """
    path = Path(path)
    if not path.exists():
        return None

    backup = path.with_name(path.name + BACKUP_SUFFIX)
    copy_file(path, backup)
    logger.debug("Backed up %s to %s", path, backup)
    return backup


def list_backups(path: Path) -> list[Path]:
    """All backups of *path*: the simple one first, then oldest to newest."""
    path = Path(path)
    backups: list[Path] = []
    simple = path.with_name(path.name + BACKUP_SUFFIX)
    if simple.exists():
        backups.append(simple)
    backups.extend(_timestamped_backups(path))
    return backups


def rotate_backups(
    path: Path, keep: int = DEFAULT_BACKUP_COUNT
) -> list[Path]:
    """Delete all but the newest *keep* timestamped backups of *path*.

    A negative *keep* means ``DEFAULT_BACKUP_COUNT``.  The simple
    ``.bak`` slot is never rotated.

    Returns:
        The backups that were removed, oldest first.
    """
    if keep < 0:
        keep = DEFAULT_BACKUP_COUNT

    backups = _timestamped_backups(Path(path))
    if len(backups) <= keep:
        return []

    removed = backups[: len(backups) - keep]
    for backup in removed:
        try:
            backup.unlink()
        except FileNotFoundError:
            continue
        logger.debug("Rotated out backup %s", backup)
    return removed


def restore_backup(path: Path) -> Path | None:
    """Copy the most recent backup back over *path*.

    The simple ``.bak`` slot wins when it exists; otherwise the newest
    timestamped backup is used.

    Returns:
        The backup that was restored, or ``None`` if there is none.
    """
    path = Path(path)
    simple = path.with_name(path.name + BACKUP_SUFFIX)
    if simple.exists():
        source = simple
    else:
        timestamped = _timestamped_backups(path)
        if not timestamped:
            return None
        source = timestamped[-1]

    atomic_write(
        path, source.read_bytes(), stat.S_IMODE(source.stat().st_mode)
    )
    logger.info("Restored %s from %s", path, source)
    return source


# =============================================================================
# Composed writes
# =============================================================================


def safe_write(
    path: Path,
    data: bytes,
    perm: int | None = None,
    keep_backups: int = DEFAULT_BACKUP_COUNT,
) -> Path | None:
    """Back up *path*, write *data* atomically, then rotate old backups.

    Returns:
        The backup created before the write, or ``None`` for a new file.
    """
    path = Path(path)
    backup = create_backup(path)
    atomic_write(path, data, perm)
    try:
        rotate_backups(path, keep_backups)
    except OSError as exc:
        logger.warning(
            "Wrote %s but could not rotate backups: %s", path, exc
        )
    return backup


def safe_write_with_lock(
    path: Path,
    data: bytes,
    perm: int | None = None,
    keep_backups: int = DEFAULT_BACKUP_COUNT,
) -> Path | None:
    """``safe_write()`` while holding the ``<path>.lock`` file lock.

    Do not call this from code that already holds the lock for *path*:
    the second acquisition would wait on itself.
    """
    with FileLock(path):
        return safe_write(path, data, perm, keep_backups)
