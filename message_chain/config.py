"""Configuration for environment variables and runtime knobs.

Provides a simple config object with per-hop templates, downstream URLs,
transport switches and worker pool bounds. This keeps the rest of the
codebase decoupled from direct env access.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env for local dev if present


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Base
    APP_NAME = os.getenv("APP_NAME", "message-chain-demo")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Per-hop default templates. Hop A substitutes {user}, hops B/C {previous_message}.
    SERVICE_A_TEMPLATE = os.getenv("SERVICE_A_TEMPLATE", "[Service A] Hello {user}")
    SERVICE_A_DESCRIPTION = os.getenv("SERVICE_A_DESCRIPTION", "Client-facing entry point of the chain")
    SERVICE_B_TEMPLATE = os.getenv("SERVICE_B_TEMPLATE", "{previous_message} [Service B] appended")
    SERVICE_B_DESCRIPTION = os.getenv("SERVICE_B_DESCRIPTION", "Internal hop, appends and forwards to C")
    SERVICE_C_TEMPLATE = os.getenv("SERVICE_C_TEMPLATE", "{previous_message} [Service C] finalized")
    SERVICE_C_DESCRIPTION = os.getenv("SERVICE_C_DESCRIPTION", "Terminal hop, produces the final message")

    # Downstream endpoints
    SERVICE_B_URL = os.getenv("SERVICE_B_URL", "http://localhost:8081")
    SERVICE_C_URL = os.getenv("SERVICE_C_URL", "http://localhost:8082")
    HTTP_CONNECT_TIMEOUT_MS = int(os.getenv("HTTP_CONNECT_TIMEOUT_MS", "5000"))
    HTTP_READ_TIMEOUT_MS = int(os.getenv("HTTP_READ_TIMEOUT_MS", "10000"))

    # Transport switches
    USE_NETWORK = _env_bool("SERVICES_USE_NETWORK", True)
    USE_ASYNC = _env_bool("SERVICES_USE_ASYNC", True)

    # Worker pool for offloaded network calls
    ASYNC_CORE_POOL_SIZE = int(os.getenv("ASYNC_CORE_POOL_SIZE", "5"))
    ASYNC_MAX_POOL_SIZE = int(os.getenv("ASYNC_MAX_POOL_SIZE", "10"))
    ASYNC_QUEUE_CAPACITY = int(os.getenv("ASYNC_QUEUE_CAPACITY", "25"))

    # Request limits and error hints
    MAX_USER_LENGTH = int(os.getenv("MAX_USER_LENGTH", "50"))
    RETRY_AFTER_SECONDS = int(os.getenv("RETRY_AFTER_SECONDS", "30"))


def hop_defaults(cfg: Config = Config) -> dict:
    """Return ``{service_id: (default_template, description)}`` for every hop."""
    return {
        "service-a": (cfg.SERVICE_A_TEMPLATE, cfg.SERVICE_A_DESCRIPTION),
        "service-b": (cfg.SERVICE_B_TEMPLATE, cfg.SERVICE_B_DESCRIPTION),
        "service-c": (cfg.SERVICE_C_TEMPLATE, cfg.SERVICE_C_DESCRIPTION),
    }
