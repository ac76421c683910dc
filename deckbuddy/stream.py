"""Entry point of the stream helper that keeps a heartbeat while a stream runs."""

from __future__ import annotations

import argparse
import threading
from typing import Optional, Sequence

from deckbuddy.appmetadata import App, AppMetadata
from deckbuddy.envshare import DEFAULT_PREFIXES, EnvSharedMemory
from deckbuddy.heartbeat import Heartbeat
from deckbuddy.logcategories import STREAM_MAIN
from deckbuddy.logsettings import get_log_settings
from deckbuddy.signals import install_signal_handler
from deckbuddy.singleinstance import SingleInstanceGuard

VERSION = "1.9.0"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
_WAIT_SLICE = 0.25


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run until the buddy asks to terminate or a quit signal arrives."""
    app_meta = AppMetadata(App.STREAM)
    app_name = app_meta.app_name()

    parser = argparse.ArgumentParser(prog=app_name)
    parser.add_argument("--version", action="version", version=VERSION)
    parser.parse_args(argv)

    guard = SingleInstanceGuard(app_name)
    if not guard.try_to_run():
        STREAM_MAIN.warning("another instance of %s is already running!", app_name)
        return EXIT_FAILURE

    try:
        quit_event = threading.Event()
        install_signal_handler(quit_event.set)
        get_log_settings().init(app_meta.log_path())
        STREAM_MAIN.info("startup. Version: %s", VERSION)

        env_memory = EnvSharedMemory()
        if not env_memory.capture_and_store(list(DEFAULT_PREFIXES)):
            STREAM_MAIN.warning("Failed to capture environment variables, but continuing...")

        with Heartbeat(app_name, on_should_terminate=quit_event.set) as heartbeat:
            try:
                heartbeat.start_beating()
                STREAM_MAIN.info("startup finished.")
                while not quit_event.wait(_WAIT_SLICE):
                    pass
            finally:
                env_memory.clear()
                STREAM_MAIN.info("shutdown.")
    finally:
        guard.release()

    return EXIT_SUCCESS