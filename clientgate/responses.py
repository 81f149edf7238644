from __future__ import annotations

from starlette.responses import JSONResponse, RedirectResponse, Response

from auth.errors import AuthorizationError, SecretMismatchError
from auth.urls import append_query_params


def error_payload(code: str, description: str) -> dict[str, str]:
    return {"error": code, "error_description": description}


def json_error_response(code: str, description: str, status_code: int) -> Response:
    response = JSONResponse(error_payload(code, description), status_code=status_code)
    response.headers["Cache-Control"] = "no-store"
    return response


def authorization_error_response(error: AuthorizationError) -> Response:
    # The exception message may carry server-side detail; only the class
    # description is shown to the caller.
    response = json_error_response(error.error, error.description, error.status_code)
    if isinstance(error, SecretMismatchError):
        response.headers["WWW-Authenticate"] = 'Basic realm="clientgate"'
    return response


def authorization_error_redirect(
    target: str,
    error: AuthorizationError,
    state: str | None = None,
) -> Response:
    params = error_payload(error.error, error.description)
    if state:
        params["state"] = state
    return RedirectResponse(url=append_query_params(target, params), status_code=302)
