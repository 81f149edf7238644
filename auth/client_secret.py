from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import TYPE_CHECKING

from auth.errors import SecretMismatchError
from auth.models import ClientRecord, ClientType, SecretVerdict

if TYPE_CHECKING:
    from auth.client_registry import ClientRegistry

# Compared against when the client is unknown, so that path costs the same.
_UNKNOWN_CLIENT_SECRET = secrets.token_bytes(32)


def generate_client_secret() -> str:
    return secrets.token_urlsafe(32)


def _digest(value: bytes) -> bytes:
    """Fixed-length digest so comparison time is independent of secret length."""
    return hashlib.sha256(b"clientgate:" + value).digest()


def _as_bytes(value: bytes | str | None) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"Client secret must be bytes or str, not {type(value).__name__}.")


def _secrets_equal(expected: bytes, presented: bytes) -> bool:
    return hmac.compare_digest(_digest(expected), _digest(presented))


def verify_secret(record: ClientRecord, presented: bytes | str | None) -> SecretVerdict:
    presented_bytes = _as_bytes(presented)
    matches = _secrets_equal(record.secret, presented_bytes)

    if not presented_bytes or not record.secret:
        return SecretVerdict.REJECTED
    if record.client_type is ClientType.PUBLIC:
        return SecretVerdict.REJECTED
    return SecretVerdict.ACCEPTED if matches else SecretVerdict.REJECTED


async def authenticate_client(
    registry: "ClientRegistry",
    client_id: str,
    presented: bytes | str | None,
) -> ClientRecord:
    """Look up ``client_id`` and confirm it knows its secret.

    An unknown client and a wrong secret raise the same SecretMismatchError;
    only the exception message, meant for server logs, tells them apart.
    """
    record = await registry.lookup(client_id)
    if record is None:
        _secrets_equal(_UNKNOWN_CLIENT_SECRET, _as_bytes(presented))
        raise SecretMismatchError("Unknown client_id.")

    if verify_secret(record, presented) is not SecretVerdict.ACCEPTED:
        raise SecretMismatchError("Presented secret was rejected.")
    return record
