"""Logger categories used throughout the package and small formatting helpers."""

from __future__ import annotations

import logging
import os
from enum import Enum


def _category(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    return logger


BUDDY_MAIN = _category("buddy.main")
STREAM_MAIN = _category("buddy.stream")
SERVER = _category("buddy.server")
SHARED = _category("buddy.shared")
UTILS = _category("buddy.utils")
OS = _category("buddy.os")
OS_VERBOSE = _category("buddy.os.verbose")


def enum_to_string(value: Enum) -> str:
    """Return the textual key of an enum member."""
    return str(value.value)


def error_string(code: int) -> str:
    """Return the system message for an error code."""
    return os.strerror(int(code))