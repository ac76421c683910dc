"""Hand environment variables from the stream helper to the buddy through a shared file."""

from __future__ import annotations

import os
import struct
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from deckbuddy.logcategories import UTILS

SHARED_MEMORY_KEY = "MoonDeckBuddy_EnvVars"
CURRENT_VERSION = 1
MAX_DATA_SIZE = 64 * 1024
MAX_VARIABLES = 1000
DEFAULT_PREFIXES = ("APOLLO", "SUNSHINE")

_HEADER = struct.Struct("<III")
_UINT32 = struct.Struct(">I")
_NULL_STRING = 0xFFFFFFFF
_MASK32 = 0xFFFFFFFF


def calculate_checksum(data: bytes) -> int:
    """Rotating 32-bit sum of the bytes; 0 for empty data."""
    checksum = 0
    for byte in data:
        checksum = (checksum + byte) & _MASK32
        checksum = ((checksum << 1) | (checksum >> 31)) & _MASK32
    return checksum


def _utf16(text: str) -> bytes:
    return text.encode("utf-16-be", "surrogatepass")


def _encode_string(text: str) -> bytes:
    raw = _utf16(text)
    return _UINT32.pack(len(raw)) + raw


def serialize_env(env: Mapping[str, str]) -> bytes:
    """Encode a mapping as a count followed by length-prefixed UTF-16BE key/value pairs."""
    parts: List[bytes] = [_UINT32.pack(len(env))]
    for key in sorted(env, key=_utf16):
        parts.append(_encode_string(key))
        parts.append(_encode_string(env[key]))
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def uint32(self) -> Optional[int]:
        end = self._offset + _UINT32.size
        if end > len(self._data):
            self._offset = len(self._data)
            return None
        (value,) = _UINT32.unpack_from(self._data, self._offset)
        self._offset = end
        return value

    def string(self) -> Optional[str]:
        length = self.uint32()
        if length is None:
            return None
        if length == _NULL_STRING:
            return ""
        if length % 2:
            return None
        end = self._offset + length
        if end > len(self._data):
            self._offset = len(self._data)
            return None
        raw = self._data[self._offset:end]
        self._offset = end
        return raw.decode("utf-16-be", "surrogatepass")


def deserialize_env(data: bytes) -> Dict[str, str]:
    """Decode data written by :func:`serialize_env`; empty on a malformed header."""
    reader = _Reader(data)
    count = reader.uint32()
    if count is None:
        UTILS.warning("Failed to read environment variable count from stream")
        return {}

    if count > MAX_VARIABLES:
        UTILS.warning("Environment variable count too large: %s", count)
        return {}

    if len(data) < _UINT32.size + count * 8:
        UTILS.warning("Data size too small for expected variable count: %s", count)
        return {}

    env: Dict[str, str] = {}
    for index in range(count):
        if reader.at_end:
            break
        key = reader.string()
        value = reader.string()
        if key is None or value is None:
            UTILS.warning("Failed to read environment variable %s from stream", index)
            break
        if key:
            env[key] = value
    return env


class EnvSharedMemory:
    """Stores selected environment variables where another process can read them."""

    def __init__(self, key: str = SHARED_MEMORY_KEY) -> None:
        self.key = key
        self.path = Path(tempfile.gettempdir()) / f"{key}.envshm"
        self._owner = False
        self._lock = threading.RLock()

    def capture_and_store(
        self,
        prefixes: Iterable[str] = DEFAULT_PREFIXES,
        environ: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Store the variables whose names start with one of ``prefixes`` (case-insensitive)."""
        prefixes = list(prefixes)
        with self._lock:
            if not prefixes:
                UTILS.warning("No prefixes provided for environment variable capture")
                return False

            source = os.environ if environ is None else environ
            folded = [prefix.casefold() for prefix in prefixes]
            captured = {
                key: value
                for key, value in source.items()
                if any(key.casefold().startswith(prefix) for prefix in folded)
            }
            for key, value in captured.items():
                UTILS.debug("Captured environment variable: %s = %s", key, value)
            UTILS.info("Captured %s environment variables for prefixes: %s", len(captured), prefixes)

            if not captured:
                UTILS.info("No environment variables found with specified prefixes - this is normal if none are set")
                self.clear()
                return True

            return self._store(captured)

    def retrieve(self) -> Dict[str, str]:
        """Read the stored variables; empty when nothing valid is stored."""
        with self._lock:
            try:
                content = self.path.read_bytes()
            except OSError:
                UTILS.debug("No shared memory available for environment variables - this is normal if Stream is not running")
                return {}

            if len(content) < _HEADER.size:
                UTILS.warning("Shared memory size too small: %s", len(content))
                return {}

            version, size, checksum = _HEADER.unpack_from(content)
            if version != CURRENT_VERSION:
                UTILS.warning("Version mismatch in shared memory. Expected: %s Got: %s", CURRENT_VERSION, version)
                return {}

            if size > MAX_DATA_SIZE or size == 0:
                UTILS.warning("Environment data size invalid: %s", size)
                return {}

            if _HEADER.size + size > len(content):
                UTILS.warning("Environment data size exceeds shared memory bounds")
                return {}

            payload = content[_HEADER.size:_HEADER.size + size]
            if calculate_checksum(payload) != checksum:
                UTILS.warning("Checksum mismatch in shared memory data")
                return {}

        env = deserialize_env(payload)
        if env:
            UTILS.info("Retrieved %s environment variables from shared memory", len(env))
        return env

    def has_valid_data(self) -> bool:
        """Whether a header with a supported version and size is stored."""
        with self._lock:
            try:
                with open(self.path, "rb") as handle:
                    header = handle.read(_HEADER.size)
            except OSError:
                return False
            if len(header) < _HEADER.size:
                return False
            version, size, _ = _HEADER.unpack(header)
            return version == CURRENT_VERSION and 0 < size <= MAX_DATA_SIZE

    def clear(self) -> bool:
        """Drop the stored variables if this instance stored them."""
        with self._lock:
            self._detach()
        UTILS.info("Cleared environment variables from shared memory")
        return True

    def close(self) -> None:
        with self._lock:
            self._detach()

    def _detach(self) -> None:
        if self._owner:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            self._owner = False

    def _store(self, env: Mapping[str, str]) -> bool:
        payload = serialize_env(env)
        if len(payload) > MAX_DATA_SIZE:
            UTILS.warning("Environment variables data too large: %s bytes (max: %s)", len(payload), MAX_DATA_SIZE)
            return False

        header = _HEADER.pack(CURRENT_VERSION, len(payload), calculate_checksum(payload))
        staging = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        try:
            staging.write_bytes(header + payload)
            os.replace(staging, self.path)
        except OSError as exc:
            UTILS.warning("Failed to create shared memory: %s", exc)
            try:
                staging.unlink()
            except OSError:
                pass
            return False

        self._owner = True
        UTILS.info("Stored %s environment variables in shared memory ( %s bytes)", len(env), len(payload))
        return True