"""Quit cleanly on SIGINT and SIGTERM."""

from __future__ import annotations

import signal
from types import FrameType
from typing import Callable, Optional


def install_signal_handler(callback: Callable[[], None]) -> None:
    """Call ``callback`` once on SIGINT or SIGTERM, restoring the default action first."""

    def _handler(code: int, _frame: Optional[FrameType]) -> None:
        signal.signal(code, signal.SIG_DFL)
        callback()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)