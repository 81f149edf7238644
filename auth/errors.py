from __future__ import annotations


class ClientRecordIntegrityError(RuntimeError):
    """A stored client record violates its own invariants."""


class RegistryUnavailableError(RuntimeError):
    def __init__(self, message: str = "Client registry is unavailable.") -> None:
        super().__init__(message)


class AuthorizationError(RuntimeError):
    error = "invalid_request"
    status_code = 400
    description = "Invalid request."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.description)


# Unknown clients and unregistered callbacks share a description so an
# unauthenticated caller cannot probe which one it hit.
_GENERIC_CLIENT_DESCRIPTION = "Invalid client_id or redirect_uri."


class UnknownClientError(AuthorizationError):
    description = _GENERIC_CLIENT_DESCRIPTION


class InvalidCallbackUriError(AuthorizationError):
    description = "redirect_uri must be an absolute URI."


class CallbackNotRegisteredError(AuthorizationError):
    description = _GENERIC_CLIENT_DESCRIPTION


class NoCallbackAvailableError(AuthorizationError):
    description = "Missing redirect_uri."


class SecretMismatchError(AuthorizationError):
    error = "invalid_client"
    status_code = 401
    description = "Client authentication failed."
