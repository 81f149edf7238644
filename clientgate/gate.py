from __future__ import annotations

import base64
import binascii
import urllib.parse
from typing import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from auth.client_registry import ClientRegistry
from auth.client_secret import authenticate_client
from auth.errors import (
    ClientRecordIntegrityError,
    RegistryUnavailableError,
    SecretMismatchError,
)
from auth.models import STRICT_POLICY, CallbackPolicy, CallbackResolution, ClientRecord
from auth.redirects import error_redirect_target, evaluate_authorization_request

from .constants import LOGGER
from .responses import (
    authorization_error_redirect,
    authorization_error_response,
    json_error_response,
)

RenderConsentFn = Callable[[Request, ClientRecord, str], Awaitable[Response]]
IssueTokenFn = Callable[[Request, ClientRecord, dict[str, str]], Awaitable[Response]]


class ClientGate:
    """Authorization-request and client-authentication glue for starlette.

    Consent rendering and token issuance belong to the embedding server and
    are injected as ``render_consent_fn`` and ``issue_token_fn``; this class
    only decides whether the request may reach them.
    """

    def __init__(
        self,
        *,
        client_registry: ClientRegistry,
        render_consent_fn: RenderConsentFn,
        issue_token_fn: IssueTokenFn,
        policy: CallbackPolicy = STRICT_POLICY,
        debug: bool = False,
    ) -> None:
        self.client_registry = client_registry
        self.policy = policy
        self.debug = debug
        self._render_consent_fn = render_consent_fn
        self._issue_token_fn = issue_token_fn

    # -- decisions -------------------------------------------------------------

    async def authorize(
        self,
        client_id: str,
        redirect_uri: str | None,
    ) -> tuple[ClientRecord | None, CallbackResolution]:
        record, resolution = await evaluate_authorization_request(
            self.client_registry,
            client_id,
            redirect_uri,
            policy=self.policy,
        )
        if resolution.accepted:
            if self.debug:
                LOGGER.info(
                    "Authorization request accepted client_id=%s outcome=%s",
                    client_id,
                    resolution.outcome.value,
                )
        else:
            LOGGER.warning(
                "Authorization request rejected client_id=%s outcome=%s redirect_uri=%r",
                client_id,
                resolution.outcome.value,
                redirect_uri,
            )
        return record, resolution

    async def authenticate(self, client_id: str, client_secret: str) -> ClientRecord:
        try:
            return await authenticate_client(self.client_registry, client_id, client_secret)
        except SecretMismatchError as error:
            LOGGER.warning("Client authentication failed client_id=%s reason=%s", client_id, error)
            raise

    # -- routes ----------------------------------------------------------------

    def routes(self) -> list[Route]:
        return [
            Route("/authorize", self._handle_authorize, methods=["GET"]),
            Route("/token", self._handle_token, methods=["POST"]),
        ]

    # -- handlers --------------------------------------------------------------

    async def _handle_authorize(self, request: Request) -> Response:
        client_id = request.query_params.get("client_id")
        redirect_uri = request.query_params.get("redirect_uri")
        state = request.query_params.get("state")

        if not client_id:
            return json_error_response("invalid_request", "Missing client_id.", 400)

        try:
            record, resolution = await self.authorize(client_id, redirect_uri)
        except RegistryUnavailableError as error:
            LOGGER.error("Client registry unavailable client_id=%s: %s", client_id, error)
            return self._unavailable()
        except ClientRecordIntegrityError as error:
            LOGGER.error("Corrupt client record client_id=%s: %s", client_id, error)
            return self._unavailable()

        if resolution.accepted:
            return await self._render_consent_fn(request, record, resolution.effective_callback)

        error = resolution.to_error()
        target = error_redirect_target(record, resolution, self.policy)
        if target is not None:
            return authorization_error_redirect(target, error, state)
        return authorization_error_response(error)

    async def _handle_token(self, request: Request) -> Response:
        form = await request.form()
        form_data = {key: str(value) for key, value in form.multi_items()}
        client_id, client_secret = self._extract_client_auth(request, form_data)

        if not client_id or not client_secret:
            return authorization_error_response(SecretMismatchError("Missing client credentials."))

        try:
            record = await self.authenticate(client_id, client_secret)
        except SecretMismatchError as error:
            return authorization_error_response(error)
        except RegistryUnavailableError as error:
            LOGGER.error("Client registry unavailable client_id=%s: %s", client_id, error)
            return self._unavailable()
        except ClientRecordIntegrityError as error:
            LOGGER.error("Corrupt client record client_id=%s: %s", client_id, error)
            return self._unavailable()

        return await self._issue_token_fn(request, record, form_data)

    # -- helpers ---------------------------------------------------------------

    def _extract_client_auth(
        self,
        request: Request,
        form_data: dict[str, str],
    ) -> tuple[str | None, str | None]:
        header = request.headers.get("authorization")
        if header and header.lower().startswith("basic "):
            raw = header.split(" ", 1)[1].strip()
            try:
                decoded = base64.b64decode(raw, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                return None, None

            if ":" not in decoded:
                return None, None
            # RFC 6749 section 2.3.1: both parts are form-urlencoded.
            client_id, client_secret = decoded.split(":", 1)
            return urllib.parse.unquote_plus(client_id), urllib.parse.unquote_plus(client_secret)

        return form_data.get("client_id"), form_data.get("client_secret")

    def _unavailable(self) -> Response:
        return json_error_response(
            "temporarily_unavailable",
            "The authorization server is temporarily unavailable.",
            503,
        )
