from __future__ import annotations

import json
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from auth.client_secret import generate_client_secret
from auth.errors import ClientRecordIntegrityError, RegistryUnavailableError
from auth.models import ClientRecord, ClientType


class ClientRegistry(ABC):
    @abstractmethod
    async def lookup(self, client_id: str) -> ClientRecord | None:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class MemoryClientRegistry(ClientRegistry):
    def __init__(self, records: Iterable[ClientRecord] = ()) -> None:
        self._clients: dict[str, ClientRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: ClientRecord) -> None:
        self._clients[record.client_id] = record

    def register(
        self,
        client_name: str,
        redirect_uris: list[str],
        *,
        default_callback: str | None = None,
        client_type: ClientType = ClientType.CONFIDENTIAL,
    ) -> ClientRecord:
        secret = generate_client_secret() if client_type is ClientType.CONFIDENTIAL else ""
        record = ClientRecord(
            client_id=str(uuid.uuid4()),
            secret=secret,
            allowed_callbacks=frozenset(redirect_uris),
            default_callback=default_callback,
            client_type=client_type,
            client_name=client_name,
        )
        self.add(record)
        return record

    async def lookup(self, client_id: str) -> ClientRecord | None:
        return self._clients.get(client_id)


class FileClientRegistry(ClientRegistry):
    """Read-only registry backed by a JSON object keyed by client id.

    The file is re-read on every lookup so edits made by the registration
    process are picked up without a restart.
    """

    def __init__(self, path: str | Path = "clients.json") -> None:
        self._path = Path(path)

    async def lookup(self, client_id: str) -> ClientRecord | None:
        payload = self._read_all().get(client_id)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise ClientRecordIntegrityError(f"Client entry {client_id} is not a JSON object.")

        record = ClientRecord.from_payload({"client_id": client_id, **payload})
        if record.client_id != client_id:
            raise ClientRecordIntegrityError(
                f"Client entry {client_id} declares a different client_id."
            )
        return record

    def _read_all(self) -> dict[str, dict]:
        if not self._path.exists():
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as error:
            raise RegistryUnavailableError(f"Client registry file is unreadable: {error}") from error
        except ValueError as error:
            raise ClientRecordIntegrityError("Client registry file is not valid JSON.") from error
        if not isinstance(raw, dict):
            raise ClientRecordIntegrityError(
                "Client registry file is invalid; expected top-level JSON object."
            )
        return raw
