"""Tracks the stream state from the stream helper's heartbeat."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from deckbuddy.enums import StreamState
from deckbuddy.heartbeat import Heartbeat


class StreamStateHandler:
    """Derives the stream state from whether the stream helper is alive."""

    def __init__(self, heartbeat_key: str, on_state_changed: Optional[Callable[[], None]] = None) -> None:
        self._on_state_changed = on_state_changed
        self._state = StreamState.NOT_STREAMING
        self._lock = threading.Lock()
        self._heartbeat = Heartbeat(heartbeat_key, on_state_changed=self._handle_process_state_changes)
        self._heartbeat.start_listening()

    def end_stream(self) -> bool:
        """Ask the stream helper to terminate if a stream is running."""
        with self._lock:
            changed = self._state is StreamState.STREAMING
            if changed:
                self._heartbeat.terminate()
                self._state = StreamState.STREAM_ENDING
        if changed:
            self._notify()
        return True

    def state(self) -> StreamState:
        return self._state

    def close(self) -> None:
        self._heartbeat.close()

    def _notify(self) -> None:
        if self._on_state_changed is not None:
            self._on_state_changed()

    def _handle_process_state_changes(self) -> None:
        alive = self._heartbeat.is_alive()
        with self._lock:
            changed = False
            if self._state is StreamState.NOT_STREAMING:
                if alive:
                    self._state = StreamState.STREAMING
                    changed = True
            elif not alive:
                self._state = StreamState.NOT_STREAMING
                changed = True
        if changed:
            self._notify()