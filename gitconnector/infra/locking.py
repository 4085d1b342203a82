"""
Advisory repository locking for gitconnector.

Uses flock on a lock file inside the repository's metadata directory.
Mutating operations hold an exclusive lock, readers a shared one.

While a writer holds the lock an operation marker records who holds it.
The marker is removed when the operation finishes; if the process dies or
a network operation times out the marker stays behind, and every later
acquisition refuses to proceed until it is cleared with clear_stale_lock().
"""

import fcntl
import json
import os
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional
import logging

from ..errors import RepositoryLocked, TransportError, CloneFailed

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = "gitconnector.lock"
MARKER_FILE_NAME = "gitconnector.op"
GIT_INDEX_LOCK = "index.lock"
POLL_INTERVAL = 0.1

# Failures that may have interrupted git half-way; the marker is kept.
MARKER_PRESERVING_ERRORS = (TransportError, CloneFailed)


def lock_path(metadata_dir: Path) -> Path:
    return Path(metadata_dir) / LOCK_FILE_NAME


def marker_path(metadata_dir: Path) -> Path:
    return Path(metadata_dir) / MARKER_FILE_NAME


def read_marker(metadata_dir: Path) -> Optional[Dict[str, Any]]:
    """Return the stale operation marker, or None if there is none."""
    path = marker_path(metadata_dir)
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError):
        # Unreadable marker still means an interrupted writer.
        return {'pid': None, 'operation': 'unknown', 'started_at': None}


def clear_stale_lock(metadata_dir: Path) -> bool:
    """
    Remove a leftover operation marker.

    Refuses while another process actually holds the lock.

    Returns:
        True if a marker was removed
    """
    metadata_dir = Path(metadata_dir)
    with _flock(lock_path(metadata_dir), exclusive=True, timeout=0, name=str(metadata_dir)):
        path = marker_path(metadata_dir)
        if path.exists():
            path.unlink()
            logger.info(f"Removed stale operation marker in {metadata_dir}")
            return True
    return False


@contextmanager
def _flock(lock_file: Path, exclusive: bool, timeout: float, name: str) -> Iterator[None]:
    """
    Internal helper to acquire a file lock.

    Args:
        lock_file: Path to the lock file
        exclusive: Exclusive (writer) or shared (reader) lock
        timeout: Seconds to wait for lock
        name: Human-readable name for error messages
    """
    mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    fd = open(lock_file, 'a')
    start = time.monotonic()

    try:
        while True:
            try:
                fcntl.flock(fd, mode | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() - start >= timeout:
                    raise RepositoryLocked(
                        f"Repository {name} is locked by another operation "
                        f"(waited {timeout}s)"
                    )
                time.sleep(POLL_INTERVAL)

        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        fd.close()


@contextmanager
def repository_lock(
    metadata_dir: Path,
    operation: str,
    exclusive: bool = True,
    timeout: float = 10,
) -> Iterator[None]:
    """
    Acquire the repository lock, yield, release on exit.

    Args:
        metadata_dir: The repository's git directory
        operation: Operation name recorded in the marker
        exclusive: True for mutating operations, False for readers
        timeout: Seconds to wait before failing with RepositoryLocked

    Raises:
        RepositoryLocked: lock busy, stale marker present, or git's own
            index.lock left behind
    """
    metadata_dir = Path(metadata_dir)
    name = str(metadata_dir)

    with _flock(lock_path(metadata_dir), exclusive, timeout, name):
        marker = read_marker(metadata_dir)
        if marker is not None:
            raise RepositoryLocked(
                f"Repository {name} was left locked by an interrupted "
                f"'{marker.get('operation')}' operation (pid {marker.get('pid')}); "
                f"run 'gitconnector unlock' after checking the repository",
                marker=marker,
            )
        if (metadata_dir / GIT_INDEX_LOCK).exists():
            raise RepositoryLocked(
                f"Repository {name} has a leftover {GIT_INDEX_LOCK}; "
                f"another git process is running or crashed"
            )

        if not exclusive:
            yield
            return

        path = marker_path(metadata_dir)
        path.write_text(json.dumps({
            'pid': os.getpid(),
            'operation': operation,
            'started_at': datetime.now().isoformat(),
        }))
        keep_marker = False
        try:
            yield
        except MARKER_PRESERVING_ERRORS as e:
            if e.details.get('timed_out'):
                keep_marker = True
                logger.error(f"'{operation}' timed out in {name}; leaving lock marker in place")
            raise
        except (KeyboardInterrupt, SystemExit):
            keep_marker = True
            logger.error(f"'{operation}' interrupted in {name}; leaving lock marker in place")
            raise
        finally:
            if not keep_marker:
                path.unlink(missing_ok=True)
