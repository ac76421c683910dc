"""Application settings stored as a JSON file next to the other configuration."""

from __future__ import annotations

import json
import math
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from deckbuddy.appmetadata import AppMetadata
from deckbuddy.logcategories import UTILS

DEFAULT_PORT = 59999
_PORT_MIN = 0
_PORT_MAX = 65535
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_CURRENT_ENTRIES = 8


class SslProtocol(Enum):
    """TLS protocol selection accepted by the settings file."""

    SECURE_PROTOCOLS = "SecureProtocols"
    TLS_V1_2 = "TlsV1_2"
    TLS_V1_2_OR_LATER = "TlsV1_2OrLater"
    TLS_V1_3 = "TlsV1_3"
    TLS_V1_3_OR_LATER = "TlsV1_3OrLater"


class SettingsError(Exception):
    """The settings file could not be read, parsed or written."""


def protocol_from_string(value: str) -> Optional[SslProtocol]:
    """Return the protocol named by ``value``, or None if it is not allowed."""
    try:
        protocol = SslProtocol(value)
    except ValueError:
        return None
    UTILS.debug("Mapped %s to %s", value, protocol)
    return protocol


def _json_port(value: Any) -> int:
    """Integer value of a JSON number, -1 when it is not a representable integer."""
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return -1
    number = int(value)
    return number if _INT_MIN <= number <= _INT_MAX else -1


class AppSettings:
    """Settings read from the settings file; missing entries are written back with defaults."""

    def __init__(self, app_metadata: AppMetadata) -> None:
        self.app_metadata = app_metadata
        self.port: int = DEFAULT_PORT
        self.logging_rules: str = ""
        self.sunshine_apps_filepath: str = ""
        self.prefer_hibernation: bool = False
        self.ssl_protocol: SslProtocol = SslProtocol.SECURE_PROTOCOLS
        self.close_steam_before_sleep: bool = True
        self.steam_exec_override: str = ""
        self.mac_address_override: str = ""

        settings_path = Path(app_metadata.settings_path())
        if not self._parse_settings_file(settings_path):
            UTILS.info("Saving default settings to %s", settings_path)
            self._save_default_file(settings_path)
            if not self._parse_settings_file(settings_path):
                raise SettingsError(f'Failed to parse "{settings_path}"!')

    def steam_executable_path(self) -> str:
        """Path of the Steam executable if it exists, otherwise ''."""
        exec_path = self.steam_exec_override or self.app_metadata.default_steam_executable()
        if exec_path and os.path.exists(exec_path):
            return exec_path
        return ""

    def _parse_settings_file(self, filepath: Path) -> bool:
        if not filepath.exists():
            return False

        try:
            data = filepath.read_bytes()
        except OSError as exc:
            raise SettingsError(f'File exists, but could not be opened: "{filepath}"') from exc

        try:
            decoded = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise SettingsError(f"Failed to decode JSON data! Reason: {exc}. Read data: {data!r}") from exc

        if not isinstance(decoded, dict) or not decoded:
            return False

        valid_entries = 0

        port = decoded.get("port")
        if isinstance(port, (int, float)) and not isinstance(port, bool):
            port_number = _json_port(port)
            if not _PORT_MIN <= port_number <= _PORT_MAX:
                raise SettingsError(f"Port value ({port_number}) is out of range!")
            self.port = port_number
            valid_entries += 1

        logging_rules = decoded.get("logging_rules")
        if isinstance(logging_rules, str):
            self.logging_rules = logging_rules
            valid_entries += 1

        sunshine_apps_filepath = decoded.get("sunshine_apps_filepath")
        if isinstance(sunshine_apps_filepath, str):
            self.sunshine_apps_filepath = sunshine_apps_filepath
            valid_entries += 1

        prefer_hibernation = decoded.get("prefer_hibernation")
        if isinstance(prefer_hibernation, bool):
            self.prefer_hibernation = prefer_hibernation
            valid_entries += 1

        ssl_protocol = decoded.get("ssl_protocol")
        if isinstance(ssl_protocol, str):
            protocol = protocol_from_string(ssl_protocol)
            if protocol is not None:
                self.ssl_protocol = protocol
                valid_entries += 1

        close_steam = decoded.get("close_steam_before_sleep")
        if isinstance(close_steam, bool):
            self.close_steam_before_sleep = close_steam
            valid_entries += 1

        mac_override = decoded.get("mac_address_override")
        if isinstance(mac_override, str):
            self.mac_address_override = mac_override.strip()
            valid_entries += 1

        steam_override = decoded.get("steam_exec_override")
        if isinstance(steam_override, str):
            self.steam_exec_override = steam_override
            valid_entries += 1

        return valid_entries == _CURRENT_ENTRIES

    def _save_default_file(self, filepath: Path) -> None:
        content: Dict[str, Any] = {
            "port": self.port,
            "logging_rules": self.logging_rules,
            "sunshine_apps_filepath": self.sunshine_apps_filepath,
            "prefer_hibernation": self.prefer_hibernation,
            "ssl_protocol": SslProtocol.SECURE_PROTOCOLS.value,
            "close_steam_before_sleep": self.close_steam_before_sleep,
            "mac_address_override": self.mac_address_override,
            "steam_exec_override": self.steam_exec_override,
        }

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SettingsError(f'Failed at mkpath: "{filepath}".') from exc

        try:
            filepath.write_text(json.dumps(content, indent=4, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f'File could not be opened for writing: "{filepath}".') from exc