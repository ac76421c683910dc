"""Names and filesystem locations used by the buddy and stream applications."""

from __future__ import annotations

import os
import posixpath
import sys
from enum import Enum
from pathlib import Path


class App(Enum):
    """The two applications of the suite."""

    BUDDY = "Buddy"
    STREAM = "Stream"


_APP_NAMES = {App.BUDDY: "MoonDeckBuddy", App.STREAM: "MoonDeckStream"}


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def _clean_path(path: str) -> str:
    path = path.replace("\\", "/")
    if not path:
        return ""
    return posixpath.normpath(path)


def _application_file_path() -> str:
    if getattr(sys, "frozen", False) or not sys.argv or not sys.argv[0]:
        return os.path.abspath(sys.executable)
    return os.path.abspath(sys.argv[0])


def config_dir() -> str:
    """Return the user configuration directory (XDG aware)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config and os.path.isdir(xdg_config):
        return _clean_path(os.path.abspath(xdg_config))
    return _clean_path(str(Path.home()) + "/.config")


class AppMetadata:
    """Derives names and paths for one of the applications."""

    def __init__(self, app: App) -> None:
        self.app = App(app)

    def app_name(self) -> str:
        return self.app_name_for(self.app)

    def app_name_for(self, app: App) -> str:
        return _APP_NAMES[App(app)]

    def log_dir(self) -> str:
        if _is_windows():
            return _clean_path(os.path.dirname(_application_file_path()))
        return "/tmp"

    def log_name(self) -> str:
        return self.app_name().lower() + ".log"

    def log_path(self) -> str:
        return _clean_path(self.log_dir() + "/" + self.log_name())

    def settings_dir(self) -> str:
        if _is_windows():
            return _clean_path(os.path.dirname(_application_file_path()))
        return _clean_path(config_dir() + "/" + self.app_name_for(App.BUDDY).lower())

    def settings_name(self) -> str:
        return "settings.json"

    def settings_path(self) -> str:
        return _clean_path(self.settings_dir() + "/" + self.settings_name())

    def autostart_dir(self) -> str:
        if _is_windows():
            appdata = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
            return _clean_path(appdata + "/Microsoft/Windows/Start Menu/Programs/Startup")
        return _clean_path(config_dir() + "/autostart")

    def autostart_name(self) -> str:
        if _is_windows():
            return self.app_name() + ".lnk"
        return self.app_name().lower() + ".desktop"

    def autostart_path(self) -> str:
        return _clean_path(self.autostart_dir() + "/" + self.autostart_name())

    def autostart_exec(self) -> str:
        if not _is_windows():
            app_image = os.environ.get("APPIMAGE", "")
            if app_image:
                return app_image
        return _application_file_path()

    def default_steam_executable(self) -> str:
        if _is_windows():
            return _registry_steam_exe()
        return "/usr/bin/steam"


def _registry_steam_exe() -> str:
    try:
        import winreg
    except ImportError:
        return ""
    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, r"Software\Valve\Steam") as key:
            value, _ = winreg.QueryValueEx(key, "SteamExe")
    except OSError:
        return ""
    return str(value)