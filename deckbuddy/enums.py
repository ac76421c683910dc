"""State enumerations shared between the buddy and stream applications."""

from __future__ import annotations

from enum import Enum


class SteamUiMode(Enum):
    """Which Steam user interface is currently shown."""

    UNKNOWN = "Unknown"
    DESKTOP = "Desktop"
    BIG_PICTURE = "BigPicture"


class AppState(Enum):
    """Lifecycle state of a Steam application."""

    STOPPED = "Stopped"
    RUNNING = "Running"
    UPDATING = "Updating"


class PcState(Enum):
    """Power state of the host PC."""

    NORMAL = "Normal"
    RESTARTING = "Restarting"
    SHUTTING_DOWN = "ShuttingDown"
    SUSPENDING = "Suspending"
    TRANSIENT = "Transient"


class StreamState(Enum):
    """State of the game stream as seen by the buddy."""

    NOT_STREAMING = "NotStreaming"
    STREAMING = "Streaming"
    STREAM_ENDING = "StreamEnding"