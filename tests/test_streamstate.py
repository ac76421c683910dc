import tempfile
import threading
import time
import uuid

import pytest

from deckbuddy.enums import StreamState
from deckbuddy.heartbeat import Heartbeat
from deckbuddy.streamstate import StreamStateHandler


@pytest.fixture(autouse=True)
def isolated_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))


@pytest.fixture
def key():
    return f"stream-{uuid.uuid4().hex}"


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def test_initially_not_streaming(key):
    changes = []
    handler = StreamStateHandler(key, on_state_changed=lambda: changes.append(1))
    try:
        assert handler.state() is StreamState.NOT_STREAMING
        assert handler.end_stream() is True
        assert handler.state() is StreamState.NOT_STREAMING
        assert changes == []
    finally:
        handler.close()


def test_detects_running_stream(key):
    with Heartbeat(key) as helper:
        helper.start_beating()
        handler = StreamStateHandler(key)
        try:
            assert handler.state() is StreamState.STREAMING
        finally:
            handler.close()


def test_full_stream_lifecycle(key):
    changes = []
    handler = StreamStateHandler(key, on_state_changed=lambda: changes.append(handler.state()))
    terminated = threading.Event()
    helper = Heartbeat(key, on_should_terminate=terminated.set)
    try:
        helper.start_beating()
        assert _wait_for(lambda: handler.state() is StreamState.STREAMING)

        assert handler.end_stream() is True
        assert handler.state() is StreamState.STREAM_ENDING
        assert terminated.wait(5.0)

        helper.close()
        assert _wait_for(lambda: handler.state() is StreamState.NOT_STREAMING)
        assert changes == [
            StreamState.STREAMING,
            StreamState.STREAM_ENDING,
            StreamState.NOT_STREAMING,
        ]
    finally:
        helper.close()
        handler.close()