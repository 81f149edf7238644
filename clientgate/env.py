from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from auth.models import CallbackPolicy

from .constants import (
    ENV_DEBUG,
    ENV_LOOPBACK_ANY_PORT,
    ENV_REDIRECT_ERRORS_TO_DEFAULT,
    ENV_REGISTRY_MAX_RETRIES,
    ENV_REGISTRY_PATH,
    ENV_REGISTRY_TIMEOUT,
    ENV_REGISTRY_URL,
    LOGGER,
)


@dataclass(frozen=True)
class RegistrySettings:
    url: str | None = None
    path: str | None = None
    timeout: float = 10.0
    max_retries: int = 2


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a numeric value.")


def load_env(env_path: str | Path | None = None) -> None:
    path = Path(env_path) if env_path else Path.cwd() / ".env"
    if not path.exists():
        return
    load_dotenv(path, override=True)


def validate_env() -> None:
    registry_url = os.getenv(ENV_REGISTRY_URL, "").strip()
    registry_path = os.getenv(ENV_REGISTRY_PATH, "").strip()
    if not registry_url and not registry_path:
        raise RuntimeError(
            f"Missing client registry configuration: set {ENV_REGISTRY_URL} or {ENV_REGISTRY_PATH}."
        )

    if registry_url:
        parsed = urlparse(registry_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise RuntimeError(
                f"{ENV_REGISTRY_URL} must be an http(s) URL (for example: "
                "https://registry.internal.example)."
            )
        if parsed.scheme == "http":
            LOGGER.warning(
                "%s uses plain http; client secrets will cross the network unencrypted.",
                ENV_REGISTRY_URL,
            )

    if _get_env_int(ENV_REGISTRY_MAX_RETRIES, 2) < 0:
        raise RuntimeError(f"{ENV_REGISTRY_MAX_RETRIES} must not be negative.")
    if _get_env_float(ENV_REGISTRY_TIMEOUT, 10.0) <= 0:
        raise RuntimeError(f"{ENV_REGISTRY_TIMEOUT} must be positive.")


def load_registry_settings() -> RegistrySettings:
    return RegistrySettings(
        url=os.getenv(ENV_REGISTRY_URL, "").strip() or None,
        path=os.getenv(ENV_REGISTRY_PATH, "").strip() or None,
        timeout=_get_env_float(ENV_REGISTRY_TIMEOUT, 10.0),
        max_retries=_get_env_int(ENV_REGISTRY_MAX_RETRIES, 2),
    )


def load_callback_policy() -> CallbackPolicy:
    return CallbackPolicy(
        loopback_any_port=is_truthy(os.getenv(ENV_LOOPBACK_ANY_PORT)),
        redirect_errors_to_default=is_truthy(os.getenv(ENV_REDIRECT_ERRORS_TO_DEFAULT)),
    )


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv(ENV_DEBUG, "0"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
