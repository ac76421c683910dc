"""A cross-process heartbeat kept in a small shared file."""

from __future__ import annotations

import dataclasses
import hashlib
import os
import struct
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

try:
    import fcntl
except ImportError:  # pragma: no cover - non-POSIX
    fcntl = None  # type: ignore[assignment]

try:
    import msvcrt
except ImportError:
    msvcrt = None  # type: ignore[assignment]

HEARTBEAT_INTERVAL_MS = 250
HEARTBEAT_TIMEOUT_MS = 2000
_ONE_DAY_MS = 24 * 60 * 60 * 1000
_LAYOUT = struct.Struct("=qq")


def generate_key_hash(key: str, salt: str) -> str:
    """Hex SHA-1 of the key followed by the salt."""
    return hashlib.sha1((key + salt).encode("utf-8")).hexdigest()


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class HeartbeatError(Exception):
    """The heartbeat segment is unusable or used in the wrong role."""


@dataclasses.dataclass
class _Record:
    time_ms: int
    terminate: bool


@contextmanager
def _file_lock(lock_path: Path) -> Iterator[None]:
    with open(lock_path, "a+b") as handle:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        elif msvcrt is not None:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
            try:
                yield
            finally:
                handle.seek(0)
                msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            yield


class Heartbeat:
    """Either beats (writes the time periodically) or listens for another process's beat."""

    def __init__(
        self,
        key: str,
        on_should_terminate: Optional[Callable[[], None]] = None,
        on_state_changed: Optional[Callable[[], None]] = None,
    ) -> None:
        self.key = key
        self._on_should_terminate = on_should_terminate
        self._on_state_changed = on_state_changed
        self._is_beating = False
        self._is_listening = False
        self._is_alive = False
        self._closed = False
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()

        name = generate_key_hash(key, "_heartbeat_key")
        directory = Path(tempfile.gettempdir())
        self._path = directory / f"{name}.heartbeat"
        self._lock_path = directory / f"{name}.heartbeat.lock"

        try:
            fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_RDWR, 0o600)
            os.close(fd)
            created = True
        except FileExistsError:
            created = False
        except OSError as exc:
            raise HeartbeatError(f"Failed to create shared memory for {key} ({self._path}). Reason: {exc}") from exc

        try:
            with _file_lock(self._lock_path):
                if created or self._path.stat().st_size < _LAYOUT.size:
                    with open(self._path, "r+b") as handle:
                        handle.write(_LAYOUT.pack(_now_ms() - _ONE_DAY_MS, 0))
        except OSError as exc:
            raise HeartbeatError(f"Failed to attach to shared memory {key} ({self._path}). Reason: {exc}") from exc

    @contextmanager
    def _memory(self) -> Iterator[_Record]:
        try:
            with _file_lock(self._lock_path), open(self._path, "r+b") as handle:
                time_ms, terminate = _LAYOUT.unpack(handle.read(_LAYOUT.size))
                record = _Record(time_ms, bool(terminate))
                original = dataclasses.replace(record)
                yield record
                if record != original:
                    handle.seek(0)
                    handle.write(_LAYOUT.pack(record.time_ms, int(record.terminate)))
        except (OSError, struct.error) as exc:
            raise HeartbeatError(f"Failed to access shared memory {self._path}: {exc}") from exc

    def _cancel_timer(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self, callback: Callable[[], None]) -> None:
        with self._timer_lock:
            if self._closed:
                return
            self._timer = threading.Timer(HEARTBEAT_INTERVAL_MS / 1000, callback)
            self._timer.daemon = True
            self._timer.start()

    def start_beating(self) -> None:
        """Start writing the current time periodically."""
        if self._is_listening:
            raise HeartbeatError("You cannot start heartbeating if you're a listener!")
        if not self._is_beating:
            self._is_beating = True
            self._beat(fresh_start=True)

    def start_listening(self) -> None:
        """Start watching the time written by the beating process."""
        if self._is_beating:
            raise HeartbeatError("You cannot start listening if you're the heartbeat!")
        if not self._is_listening:
            self._is_listening = True
            self._listen()

    def terminate(self) -> None:
        """Ask the beating process to terminate."""
        with self._memory() as memory:
            memory.terminate = True

    def is_alive(self) -> bool:
        return self._is_beating or self._is_alive

    def close(self) -> None:
        """Stop the timer; a beater leaves a time that soon reads as dead."""
        with self._timer_lock:
            if self._closed:
                return
            self._closed = True
        self._cancel_timer()
        if self._is_beating:
            with self._memory() as memory:
                memory.time_ms = _now_ms() - HEARTBEAT_TIMEOUT_MS + HEARTBEAT_INTERVAL_MS

    def __enter__(self) -> "Heartbeat":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _beat(self, fresh_start: bool = False) -> None:
        self._cancel_timer()
        if self._closed:
            return
        with self._memory() as memory:
            should_terminate = not fresh_start and memory.terminate
            if not should_terminate:
                memory.terminate = False
                memory.time_ms = _now_ms()

        if should_terminate:
            if self._on_should_terminate is not None:
                self._on_should_terminate()
            return

        self._schedule(self._beat)

    def _listen(self) -> None:
        self._cancel_timer()
        if self._closed:
            return
        with self._memory() as memory:
            last_beat = memory.time_ms
        alive = _now_ms() - last_beat <= HEARTBEAT_TIMEOUT_MS

        if alive != self._is_alive:
            self._is_alive = alive
            if self._on_state_changed is not None:
                self._on_state_changed()

        self._schedule(self._listen)