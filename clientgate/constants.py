from __future__ import annotations

import logging

LOGGER = logging.getLogger("clientgate")
APP_VERSION = "0.1.0"

ENV_REGISTRY_URL = "CLIENTGATE_REGISTRY_URL"
ENV_REGISTRY_PATH = "CLIENTGATE_REGISTRY_PATH"
ENV_REGISTRY_TIMEOUT = "CLIENTGATE_REGISTRY_TIMEOUT"
ENV_REGISTRY_MAX_RETRIES = "CLIENTGATE_REGISTRY_MAX_RETRIES"
ENV_LOOPBACK_ANY_PORT = "CLIENTGATE_LOOPBACK_ANY_PORT"
ENV_REDIRECT_ERRORS_TO_DEFAULT = "CLIENTGATE_REDIRECT_ERRORS_TO_DEFAULT"
ENV_DEBUG = "CLIENTGATE_DEBUG"
