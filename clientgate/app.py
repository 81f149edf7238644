from __future__ import annotations

import contextlib

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from auth.client_registry import ClientRegistry, FileClientRegistry
from auth.models import CallbackPolicy

from .constants import APP_VERSION
from .env import (
    RegistrySettings,
    load_callback_policy,
    load_env,
    load_registry_settings,
    setup_logging,
    validate_env,
)
from .gate import ClientGate, IssueTokenFn, RenderConsentFn
from .http import HttpClientRegistry


def build_client_registry(settings: RegistrySettings) -> ClientRegistry:
    if settings.url:
        return HttpClientRegistry(
            settings.url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )
    if settings.path:
        return FileClientRegistry(settings.path)
    raise RuntimeError("Client registry settings need a url or a path.")


async def health_route(request: Request) -> Response:
    del request
    return JSONResponse({"status": "ok", "version": APP_VERSION})


def create_app(
    *,
    render_consent_fn: RenderConsentFn,
    issue_token_fn: IssueTokenFn,
    client_registry: ClientRegistry | None = None,
    policy: CallbackPolicy | None = None,
) -> Starlette:
    """Build the starlette app serving ``/authorize``, ``/token`` and ``/health``.

    Whatever is not passed in is configured from the environment.
    """
    load_env()
    debug_enabled = setup_logging()

    if client_registry is None:
        validate_env()
        client_registry = build_client_registry(load_registry_settings())
    if policy is None:
        policy = load_callback_policy()

    gate = ClientGate(
        client_registry=client_registry,
        render_consent_fn=render_consent_fn,
        issue_token_fn=issue_token_fn,
        policy=policy,
        debug=debug_enabled,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        await client_registry.aclose()

    app = Starlette(
        routes=[*gate.routes(), Route("/health", health_route, methods=["GET"])],
        lifespan=lifespan,
    )
    app.state.client_gate = gate
    return app
