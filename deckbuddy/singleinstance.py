"""Ensures only one instance of an application runs at a time."""

from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import BinaryIO, Optional

from deckbuddy.heartbeat import generate_key_hash

try:
    import fcntl
except ImportError:  # pragma: no cover - non-POSIX
    fcntl = None  # type: ignore[assignment]

try:
    import msvcrt
except ImportError:
    msvcrt = None  # type: ignore[assignment]


def _lock(handle: BinaryIO) -> bool:
    try:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        elif msvcrt is not None:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    except OSError:
        return False
    return True


def _unlock(handle: BinaryIO) -> None:
    try:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        elif msvcrt is not None:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    finally:
        handle.close()


class SingleInstanceGuard:
    """A system-wide lock named after ``key``; the operating system frees it if the holder dies."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.path = Path(tempfile.gettempdir()) / f"{generate_key_hash(key, '_shared_mem_key')}.instance"
        self._handle: Optional[BinaryIO] = None
        self._mutex = threading.Lock()

    def _try_acquire(self) -> Optional[BinaryIO]:
        handle = open(self.path, "a+b")
        if _lock(handle):
            return handle
        handle.close()
        return None

    def is_another_running(self) -> bool:
        """Whether some other holder owns the lock; False if this guard owns it."""
        with self._mutex:
            if self._handle is not None:
                return False
            handle = self._try_acquire()
            if handle is None:
                return True
            _unlock(handle)
            return False

    def try_to_run(self) -> bool:
        """Take the lock. Calling it while this guard already runs fails and releases the lock."""
        if self.is_another_running():
            return False

        with self._mutex:
            acquired = self._handle is None and (handle := self._try_acquire()) is not None
            if acquired:
                self._handle = handle
        if not acquired:
            self.release()
            return False
        return True

    def release(self) -> None:
        with self._mutex:
            if self._handle is not None:
                _unlock(self._handle)
                self._handle = None

    def __enter__(self) -> "SingleInstanceGuard":
        return self

    def __exit__(self, *args: object) -> None:
        self.release()