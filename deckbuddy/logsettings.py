"""Log formatting, log file rotation and logging rule configuration."""

from __future__ import annotations

import fnmatch
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from deckbuddy.logcategories import BUDDY_MAIN, OS, OS_VERBOSE, SERVER, SHARED, STREAM_MAIN, UTILS

MAX_LOG_SIZE = 2 * 1024 * 1024
_ROOT_CATEGORY = "buddy"
_CATEGORIES = (BUDDY_MAIN, STREAM_MAIN, SERVER, SHARED, UTILS, OS, OS_VERBOSE)
_RULE_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "critical": logging.ERROR,
}
_LEVELS_ASCENDING = (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL + 1)


def swap_files_if_needed(filepath: Union[str, Path]) -> None:
    """Move the log to ``<name>.old`` once it grows beyond the size limit."""
    path = Path(filepath)
    try:
        size = path.stat().st_size
    except OSError:
        return
    if size <= MAX_LOG_SIZE:
        return

    old_path = path.with_name(path.name + ".old")
    if old_path.exists():
        try:
            old_path.unlink()
        except OSError as exc:
            raise OSError(f'File could not be removed: "{old_path.name}".') from exc
    try:
        path.rename(old_path)
    except OSError as exc:
        raise OSError(f'File could not be renamed: "{path.name}" -> "{old_path.name}".') from exc


def append_empty_line(filepath: Union[str, Path]) -> None:
    """Separate a new session from the previous one in a non-empty log."""
    path = Path(filepath)
    try:
        size = path.stat().st_size
    except OSError:
        return
    if size > 0:
        try:
            with open(path, "a", encoding="utf-8") as handle:
                handle.write("\n\n")
        except OSError as exc:
            raise OSError(f'File could not be opened for writing: "{path}".') from exc


class _Formatter(logging.Formatter):
    """``[hh:mm:ss.zzz] LEVEL    category: message``."""

    _LABELS = {
        logging.DEBUG: "DEBUG    ",
        logging.INFO: "INFO     ",
        logging.WARNING: "WARNING  ",
        logging.ERROR: "CRITICAL ",
        logging.CRITICAL: "FATAL    ",
    }

    def _label(self, levelno: int) -> str:
        for level in sorted(self._LABELS, reverse=True):
            if levelno >= level:
                return self._LABELS[level]
        return self._LABELS[logging.DEBUG]

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        category = f"{record.name}: " if record.name else ""
        text = f"[{stamp}.{int(record.msecs):03d}] {self._label(record.levelno)}{category}{record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


class _FileAndStdoutHandler(logging.Handler):
    """Writes every record to stdout and appends it to the log file."""

    def __init__(self, settings: "LogSettings") -> None:
        super().__init__()
        self._settings = settings

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            sys.stdout.write(message + "\n")
            sys.stdout.flush()

            filepath = self._settings.filepath()
            swap_files_if_needed(filepath)
            with open(filepath, "a", encoding="utf-8") as handle:
                handle.write(message + "\n")
        except Exception:
            self.handleError(record)


class LogSettings:
    """Process-wide logging configuration; use :func:`get_log_settings`."""

    def __init__(self) -> None:
        self._filepath = ""
        self._handler: Optional[logging.Handler] = None

    def init(self, filepath: Union[str, Path]) -> None:
        """Install the log format; with a path, also log to that file."""
        filepath = str(filepath)
        if not filepath:
            handler: logging.Handler = logging.StreamHandler()
            handler.setFormatter(_Formatter())
            self._install(handler)
            return

        self._filepath = filepath
        swap_files_if_needed(filepath)
        append_empty_line(filepath)

        handler = _FileAndStdoutHandler(self)
        handler.setFormatter(_Formatter())
        self._install(handler)

        UTILS.info("Log location: %s", self._filepath)

    def filepath(self) -> str:
        return self._filepath

    def set_logging_rules(self, rules: str) -> None:
        """Apply ``category[.level]=true|false`` rules separated by ';' or newlines."""
        if not rules:
            return
        for raw_rule in rules.replace(";", "\n").splitlines():
            rule = raw_rule.strip()
            if not rule or "=" not in rule:
                continue
            pattern, _, value = (part.strip() for part in rule.partition("="))
            value = value.lower()
            if value not in ("true", "false") or not pattern:
                continue
            self._apply_rule(pattern, value == "true")

    def _install(self, handler: logging.Handler) -> None:
        root = logging.getLogger(_ROOT_CATEGORY)
        if self._handler is not None:
            root.removeHandler(self._handler)
        root.addHandler(handler)
        self._handler = handler

    @staticmethod
    def _apply_rule(pattern: str, enabled: bool) -> None:
        category, _, suffix = pattern.rpartition(".")
        level: Optional[int] = _RULE_LEVELS.get(suffix)
        if level is None or not category:
            category, level = pattern, None

        for logger in _CATEGORIES:
            if not fnmatch.fnmatchcase(logger.name, category):
                continue
            current = logger.getEffectiveLevel()
            if level is None:
                logger.setLevel(logging.DEBUG if enabled else logging.CRITICAL + 1)
            elif enabled:
                logger.setLevel(min(current, level))
            else:
                above = next(item for item in _LEVELS_ASCENDING if item > level)
                logger.setLevel(max(current, above))


_INSTANCE = LogSettings()


def get_log_settings() -> LogSettings:
    """The process-wide :class:`LogSettings`."""
    return _INSTANCE