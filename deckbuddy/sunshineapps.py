"""Reads the application names configured in Sunshine's apps.json."""

from __future__ import annotations

import json
import posixpath
import sys
from pathlib import Path
from typing import Optional, Set, Union

from deckbuddy.appmetadata import config_dir
from deckbuddy.logcategories import OS


def _registry_install_dir() -> str:
    try:
        import winreg
    except ImportError:
        return ""
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, r"Software\LizardByte\Sunshine") as key:
            value, _ = winreg.QueryValueEx(key, "Default")
    except OSError:
        return ""
    return str(value or "")


def default_apps_path() -> str:
    """The usual location of Sunshine's apps.json, or '' when unknown."""
    if sys.platform.startswith("win"):
        install_dir = _registry_install_dir()
        if not install_dir:
            return ""
        return posixpath.normpath(install_dir.replace("\\", "/") + "/config/apps.json")
    return posixpath.normpath(config_dir() + "/sunshine/apps.json")


class SunshineApps:
    """Loads the set of app names from a Sunshine apps file."""

    def __init__(self, filepath: Union[str, Path] = "") -> None:
        self.filepath = str(filepath)

    def load(self) -> Optional[Set[str]]:
        """Return the app names, or None when the file cannot be read or parsed."""
        filepath = self.filepath or default_apps_path()
        OS.debug("selected filepath for Sunshine apps: %s", filepath)
        if not filepath:
            OS.warning("filepath for Sunshine apps is empty!")
            return None

        try:
            data = Path(filepath).read_bytes()
        except OSError as exc:
            OS.warning("file %s could not be opened! Reason: %s", filepath, exc)
            return None

        try:
            decoded = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            OS.warning("failed to decode JSON data! Reason: %s | data: %r", exc, data)
            return None

        apps = decoded.get("apps") if isinstance(decoded, dict) else None
        if not isinstance(apps, list):
            OS.warning("file %s could not be parsed!", self.filepath)
            return None

        names: Set[str] = set()
        if not apps:
            OS.debug("there are no Sunshine apps to parse.")
            return names

        for app in apps:
            if not isinstance(app, dict):
                OS.debug("skipping entry as it's not an object: %r", app)
                continue
            if "name" not in app:
                OS.debug('skipping entry as it does not contain "name" field: %r', app)
                continue
            name = app["name"]
            if not isinstance(name, str):
                OS.debug('skipping entry as the "name" field does not contain a string: %r', name)
                continue
            names.add(name)

        OS.debug("parsed the following Sunshine apps: %s", names)
        return names