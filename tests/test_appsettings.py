import json

import pytest

from deckbuddy.appsettings import (
    DEFAULT_PORT,
    AppSettings,
    SettingsError,
    SslProtocol,
    protocol_from_string,
)


class _Metadata:
    def __init__(self, settings_path, steam_exe=""):
        self._settings_path = settings_path
        self._steam_exe = steam_exe

    def settings_path(self):
        return str(self._settings_path)

    def default_steam_executable(self):
        return self._steam_exe


FULL = {
    "port": 1234,
    "logging_rules": "buddy.*.debug=true",
    "sunshine_apps_filepath": "/some/apps.json",
    "prefer_hibernation": True,
    "ssl_protocol": "TlsV1_3",
    "close_steam_before_sleep": False,
    "mac_address_override": "  00:00:5E:00:53:01 ",
    "steam_exec_override": "",
}


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "cfg" / "settings.json"


def test_protocol_from_string():
    assert protocol_from_string("TlsV1_2OrLater") is SslProtocol.TLS_V1_2_OR_LATER
    assert protocol_from_string("SecureProtocols") is SslProtocol.SECURE_PROTOCOLS
    assert protocol_from_string("SslV3") is None


def test_missing_file_writes_defaults(settings_file):
    settings = AppSettings(_Metadata(settings_file))
    assert settings.port == DEFAULT_PORT
    assert settings.prefer_hibernation is False
    assert settings.close_steam_before_sleep is True
    assert settings.ssl_protocol is SslProtocol.SECURE_PROTOCOLS
    assert settings.logging_rules == ""

    written = json.loads(settings_file.read_text(encoding="utf-8"))
    assert written["port"] == DEFAULT_PORT
    assert written["ssl_protocol"] == "SecureProtocols"
    assert set(written) == set(FULL)


def test_full_file_is_loaded_and_kept(settings_file):
    settings_file.parent.mkdir(parents=True)
    original = json.dumps(FULL)
    settings_file.write_text(original, encoding="utf-8")

    settings = AppSettings(_Metadata(settings_file))
    assert settings.port == 1234
    assert settings.logging_rules == "buddy.*.debug=true"
    assert settings.sunshine_apps_filepath == "/some/apps.json"
    assert settings.prefer_hibernation is True
    assert settings.ssl_protocol is SslProtocol.TLS_V1_3
    assert settings.close_steam_before_sleep is False
    assert settings.mac_address_override == "00:00:5E:00:53:01"
    assert settings_file.read_text(encoding="utf-8") == original


def test_partial_file_is_completed(settings_file):
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({"port": 4321, "prefer_hibernation": True}), encoding="utf-8")

    settings = AppSettings(_Metadata(settings_file))
    assert settings.port == 4321
    assert settings.prefer_hibernation is True

    written = json.loads(settings_file.read_text(encoding="utf-8"))
    assert written["port"] == 4321
    assert written["prefer_hibernation"] is True
    assert set(written) == set(FULL)


def test_invalid_protocol_is_replaced(settings_file):
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({**FULL, "ssl_protocol": "Bogus"}), encoding="utf-8")

    settings = AppSettings(_Metadata(settings_file))
    assert settings.ssl_protocol is SslProtocol.SECURE_PROTOCOLS
    written = json.loads(settings_file.read_text(encoding="utf-8"))
    assert written["ssl_protocol"] == "SecureProtocols"
    assert written["port"] == 1234


@pytest.mark.parametrize("port", [70000, -1, 1.5])
def test_port_out_of_range(settings_file, port):
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({**FULL, "port": port}), encoding="utf-8")
    with pytest.raises(SettingsError):
        AppSettings(_Metadata(settings_file))


def test_invalid_json(settings_file):
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsError):
        AppSettings(_Metadata(settings_file))


def test_steam_executable_override(settings_file, tmp_path):
    steam = tmp_path / "steam"
    steam.write_text("", encoding="utf-8")
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({**FULL, "steam_exec_override": str(steam)}), encoding="utf-8")

    settings = AppSettings(_Metadata(settings_file, steam_exe="/nonexistent/steam"))
    assert settings.steam_executable_path() == str(steam)


def test_steam_executable_default_and_missing(settings_file, tmp_path):
    steam = tmp_path / "steam"
    steam.write_text("", encoding="utf-8")
    assert AppSettings(_Metadata(settings_file, steam_exe=str(steam))).steam_executable_path() == str(steam)

    missing = AppSettings(_Metadata(settings_file, steam_exe=str(tmp_path / "none")))
    assert missing.steam_executable_path() == ""