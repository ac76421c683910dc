"""Persistent set of paired client ids."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Set, Union

from deckbuddy.logcategories import SERVER


class ClientIdsError(Exception):
    """The client ids file could not be read, parsed or written."""


class ClientIds:
    """A set of client ids stored as a JSON array in a file."""

    def __init__(self, filepath: Union[str, Path]) -> None:
        self.filepath = Path(filepath)
        self._ids: Set[str] = set()

    def load(self) -> None:
        """Replace the current ids with those stored in the file, if it exists."""
        self._ids.clear()
        if not self.filepath.exists():
            return

        try:
            data = self.filepath.read_bytes()
        except OSError as exc:
            raise ClientIdsError(f'File exists, but could not be opened: "{self.filepath}"') from exc

        try:
            decoded = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ClientIdsError(f"Failed to decode JSON data! Reason: {exc}. Read data: {data!r}") from exc

        if not isinstance(decoded, list):
            raise ClientIdsError("Client Ids file contains invalid JSON data!")

        skipped = False
        for entry in decoded:
            if isinstance(entry, str) and entry:
                self._ids.add(entry)
            else:
                skipped = True

        if skipped:
            SERVER.warning("Client Ids file contained ids that were skipped!")

    def save(self) -> None:
        """Write the ids to the file as an indented JSON array."""
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ClientIdsError(f'Failed at mkpath: "{self.filepath}".') from exc

        content = json.dumps(sorted(self._ids), indent=4) + "\n"
        try:
            self.filepath.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ClientIdsError(f'File could not be opened for writing: "{self.filepath}".') from exc
        SERVER.info("Finished saving: %s", self.filepath)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._ids

    def add(self, client_id: str) -> None:
        self._ids.add(client_id)

    def remove(self, client_id: str) -> None:
        self._ids.discard(client_id)