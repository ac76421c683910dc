"""Pairing of new clients confirmed by a PIN entered on the host."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Callable, Optional

from deckbuddy.clientids import ClientIds
from deckbuddy.logcategories import SERVER


@dataclass(frozen=True)
class _PairingData:
    client_id: str
    hashed_id: str


class PairingManager:
    """Tracks a single pairing attempt and records the client once confirmed."""

    def __init__(
        self,
        client_ids: ClientIds,
        on_request_input: Optional[Callable[[], None]] = None,
        on_abort: Optional[Callable[[], None]] = None,
    ) -> None:
        self._client_ids = client_ids
        self._on_request_input = on_request_input
        self._on_abort = on_abort
        self._pairing: Optional[_PairingData] = None

    def is_paired(self, client_id: str) -> bool:
        return client_id in self._client_ids

    def is_pairing(self, client_id: Optional[str] = None) -> bool:
        """Whether pairing is in progress, for ``client_id`` if given."""
        if self._pairing is None:
            return False
        return client_id is None or self._pairing.client_id == client_id

    def start_pairing(self, client_id: str, hashed_id: str) -> bool:
        if self._pairing is not None:
            SERVER.warning("Cannot start pairing as %s is currently being paired!", self._pairing.client_id)
            return False

        if not client_id or not hashed_id:
            SERVER.warning("Invalid id or hashed_id provided for pairing!")
            return False

        if client_id in self._client_ids:
            SERVER.warning("Id %s is already paired!", client_id)
            return False

        self._pairing = _PairingData(client_id, hashed_id)
        if self._on_request_input is not None:
            self._on_request_input()
        return True

    def abort_pairing(self, client_id: str) -> bool:
        if not self.is_pairing():
            return True

        if not self.is_pairing(client_id):
            SERVER.warning("Cannot abort pairing for other id than %s", client_id)
            return False

        SERVER.debug("Aborting pairing for %s", client_id)
        if self._on_abort is not None:
            self._on_abort()
        self._pairing = None
        return True

    def finish_pairing(self, pin: int) -> None:
        """Complete pairing if ``pin`` matches the hash sent by the client."""
        if self._pairing is None:
            SERVER.warning("Pairing is not in progress!")
            return

        expected = base64.b64encode((self._pairing.client_id + str(pin)).encode("utf-8")).decode("ascii")
        if expected != self._pairing.hashed_id:
            SERVER.warning("Pairing code does not match.")
            return

        self._client_ids.add(self._pairing.client_id)
        self._client_ids.save()
        self._pairing = None

    def reject_pairing(self) -> None:
        SERVER.debug("Pairing was rejected.")
        self._pairing = None