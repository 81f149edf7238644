from __future__ import annotations

import asyncio
import logging
import urllib.parse

import httpx

from auth.client_registry import ClientRegistry
from auth.errors import ClientRecordIntegrityError, RegistryUnavailableError
from auth.models import ClientRecord

from .constants import LOGGER


def _seconds_from_retry_after(header: str | None) -> int | None:
    if header is None:
        return None
    try:
        return max(0, int(header.strip()))
    except ValueError:
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        max_wait_seconds: int = 30,
        sleep=asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._max_retries = max(0, max_retries)
        self._max_wait_seconds = max_wait_seconds
        self._sleep = sleep
        self._logger = logger or LOGGER

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        retries = 0

        while True:
            next_request = httpx.Request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=body,
                extensions=request.extensions,
            )
            response = await self._transport.handle_async_request(next_request)

            if retries >= self._max_retries:
                return response

            if response.status_code == 429:
                wait_seconds = _seconds_from_retry_after(response.headers.get("retry-after"))
                if wait_seconds is None:
                    wait_seconds = 1
                wait_seconds = min(wait_seconds, self._max_wait_seconds)
                self._logger.warning(
                    "Retrying registry 429 after %ss (%s %s)",
                    wait_seconds,
                    request.method,
                    request.url,
                )
                await response.aclose()
                await self._sleep(wait_seconds)
                retries += 1
                continue

            if 500 <= response.status_code < 600:
                backoff_seconds = 2**retries
                self._logger.warning(
                    "Retrying registry %s after %ss (%s %s)",
                    response.status_code,
                    backoff_seconds,
                    request.method,
                    request.url,
                )
                await response.aclose()
                await self._sleep(backoff_seconds)
                retries += 1
                continue

            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


class HttpClientRegistry(ClientRegistry):
    """Looks clients up from a remote registry service.

    ``GET {base_url}/clients/{client_id}`` must answer 200 with a client
    payload or 404 when the client does not exist. Anything else is a
    registry failure and never a rejection of the client.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            transport=RetryTransport(
                httpx.AsyncHTTPTransport(),
                max_retries=max_retries,
                logger=LOGGER,
            ),
        )

    def _client_url(self, client_id: str) -> str:
        return f"{self.base_url}/clients/{urllib.parse.quote(client_id, safe='')}"

    async def lookup(self, client_id: str) -> ClientRecord | None:
        if not client_id:
            return None

        try:
            response = await self._client.get(self._client_url(client_id))
        except httpx.HTTPError as error:
            raise RegistryUnavailableError(f"Client registry request failed: {error}") from error

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise RegistryUnavailableError(
                f"Client registry returned status {response.status_code}."
            )

        try:
            payload = response.json()
        except ValueError as error:
            raise ClientRecordIntegrityError("Client registry returned invalid JSON.") from error

        record = ClientRecord.from_payload(payload)
        if record.client_id != client_id:
            raise ClientRecordIntegrityError(
                f"Client registry answered {client_id} with a different client_id."
            )
        return record

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()
