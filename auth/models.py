from __future__ import annotations

import enum
from dataclasses import dataclass, field

from auth.errors import (
    AuthorizationError,
    CallbackNotRegisteredError,
    ClientRecordIntegrityError,
    InvalidCallbackUriError,
    NoCallbackAvailableError,
    UnknownClientError,
)
from auth.urls import callbacks_match, parse_callback


class ClientType(str, enum.Enum):
    CONFIDENTIAL = "confidential"
    PUBLIC = "public"


class CallbackOutcome(str, enum.Enum):
    ACCEPTED_DEFAULT = "accepted-default"
    ACCEPTED_EXPLICIT = "accepted-explicit"
    REJECTED_UNKNOWN_CLIENT = "rejected-unknown-client"
    REJECTED_NO_CALLBACK = "rejected-no-callback"
    REJECTED_INVALID_URI = "rejected-invalid-uri"
    REJECTED_NOT_REGISTERED = "rejected-not-registered"


class SecretVerdict(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


_OUTCOME_ERRORS = {
    CallbackOutcome.REJECTED_UNKNOWN_CLIENT: UnknownClientError,
    CallbackOutcome.REJECTED_NO_CALLBACK: NoCallbackAvailableError,
    CallbackOutcome.REJECTED_INVALID_URI: InvalidCallbackUriError,
    CallbackOutcome.REJECTED_NOT_REGISTERED: CallbackNotRegisteredError,
}


@dataclass(frozen=True)
class CallbackPolicy:
    # RFC 8252 section 7.3: native apps bind an ephemeral loopback port.
    loopback_any_port: bool = False
    redirect_errors_to_default: bool = False


STRICT_POLICY = CallbackPolicy()


@dataclass(frozen=True)
class CallbackResolution:
    outcome: CallbackOutcome
    effective_callback: str | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome in (
            CallbackOutcome.ACCEPTED_DEFAULT,
            CallbackOutcome.ACCEPTED_EXPLICIT,
        )

    def to_error(self) -> AuthorizationError | None:
        error_cls = _OUTCOME_ERRORS.get(self.outcome)
        return None if error_cls is None else error_cls()

    def raise_for_outcome(self) -> None:
        error = self.to_error()
        if error is not None:
            raise error


@dataclass(frozen=True)
class ClientRecord:
    """A registered OAuth2 client as seen by the authorization server.

    Instances validate their invariants on construction, so a record that
    exists is always well-formed: the default callback is absolute, the
    allow-list is non-empty and holds only absolute, fragment-free URIs.
    """

    client_id: str
    secret: bytes = field(repr=False)
    allowed_callbacks: frozenset[str]
    default_callback: str | None = None
    client_type: ClientType = ClientType.CONFIDENTIAL
    client_name: str = ""

    def __post_init__(self) -> None:
        secret = self.secret
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if secret is None:
            secret = b""
        if not isinstance(secret, bytes):
            raise ClientRecordIntegrityError("Client secret must be bytes or str.")
        try:
            secret.decode("utf-8")
        except UnicodeDecodeError as error:
            raise ClientRecordIntegrityError("Client secret must be valid UTF-8.") from error
        if isinstance(self.allowed_callbacks, str):
            raise ClientRecordIntegrityError("allowed_callbacks must be a collection of URIs.")
        try:
            client_type = ClientType(self.client_type)
        except ValueError as error:
            raise ClientRecordIntegrityError(str(error)) from error
        object.__setattr__(self, "secret", secret)
        object.__setattr__(self, "allowed_callbacks", frozenset(self.allowed_callbacks))
        object.__setattr__(self, "client_type", client_type)

        if not isinstance(self.client_id, str) or not self.client_id:
            raise ClientRecordIntegrityError("client_id must be a non-empty string.")
        if self.client_type is ClientType.CONFIDENTIAL and not self.secret:
            raise ClientRecordIntegrityError(
                f"Confidential client {self.client_id} has no secret."
            )
        if not self.allowed_callbacks:
            raise ClientRecordIntegrityError(
                f"Client {self.client_id} has no allowed callbacks."
            )
        for callback in self.allowed_callbacks:
            parts = parse_callback(callback)
            if parts is None:
                raise ClientRecordIntegrityError(
                    f"Client {self.client_id} has a non-absolute allowed callback."
                )
            if parts.has_fragment:
                raise ClientRecordIntegrityError(
                    f"Client {self.client_id} has an allowed callback with a fragment."
                )
        self.check_default_callback()

    def check_default_callback(self) -> None:
        if self.default_callback is not None and parse_callback(self.default_callback) is None:
            raise ClientRecordIntegrityError(
                f"Client {self.client_id} has a non-absolute default callback."
            )

    def is_callback_allowed(self, callback: str, policy: CallbackPolicy = STRICT_POLICY) -> bool:
        requested = parse_callback(callback)
        if requested is None:
            raise ValueError("callback must be an absolute URI.")

        for registered_uri in self.allowed_callbacks:
            registered = parse_callback(registered_uri)
            if registered is not None and callbacks_match(
                requested,
                registered,
                loopback_any_port=policy.loopback_any_port,
            ):
                return True
        return False

    @classmethod
    def from_payload(cls, payload: dict) -> "ClientRecord":
        if not isinstance(payload, dict):
            raise ClientRecordIntegrityError("Client payload must be a JSON object.")

        redirect_uris = payload.get("redirect_uris")
        if not isinstance(redirect_uris, list) or not all(
            isinstance(uri, str) for uri in redirect_uris
        ):
            raise ClientRecordIntegrityError("redirect_uris must be a list of strings.")

        default_callback = payload.get("default_redirect_uri")
        if default_callback is not None and not isinstance(default_callback, str):
            raise ClientRecordIntegrityError("default_redirect_uri must be a string.")

        return cls(
            client_id=payload.get("client_id"),
            secret=payload.get("client_secret") or b"",
            allowed_callbacks=frozenset(redirect_uris),
            default_callback=default_callback,
            client_type=payload.get("client_type", ClientType.CONFIDENTIAL.value),
            client_name=payload.get("client_name") or "",
        )

    def to_payload(self) -> dict:
        return {
            "client_id": self.client_id,
            "client_secret": self.secret.decode("utf-8"),
            "redirect_uris": sorted(self.allowed_callbacks),
            "default_redirect_uri": self.default_callback,
            "client_type": self.client_type.value,
            "client_name": self.client_name,
        }

