"""Runtime configuration for the registry server and its clients.

Values come from keyword arguments first, then ``REACH_*`` environment
variables, then defaults.

Environment Variables:
    REACH_HOST: Bind address for ``reach serve`` (default 0.0.0.0)
    REACH_PORT: Bind port (default 3001)
    REACH_AUDIENCE: Identifier this service puts in challenges (default agent-reach)
    REACH_ALLOW_SIGNED_REQUESTS: Enable the direct per-request signature mode
        on /register and /deregister (default false)
    REACH_MAX_TTL: Largest accepted registration ttl in seconds (default 30 days)
    REACH_REGISTRY_URL: Registry base URL used by the client and tool adapter
    REACH_IDENTITY_PATH: Identity file used by the CLI and tool adapter
    REACH_HTTP_TIMEOUT: Client-side HTTP timeout in seconds (default 10)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from reach.models.constants import (
    DEFAULT_AUDIENCE,
    DEFAULT_TTL_SECONDS,
    MAX_TTL_SECONDS,
    SESSION_TTL_SECONDS,
)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3001
DEFAULT_REGISTRY_URL = "https://reach.agent-id.ai"
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_IDENTITY_PATH = Path("~/.config/agent-id/identity.json")

ENV_HOST = "REACH_HOST"
ENV_PORT = "REACH_PORT"
ENV_AUDIENCE = "REACH_AUDIENCE"
ENV_ALLOW_SIGNED_REQUESTS = "REACH_ALLOW_SIGNED_REQUESTS"
ENV_MAX_TTL = "REACH_MAX_TTL"
ENV_REGISTRY_URL = "REACH_REGISTRY_URL"
ENV_IDENTITY_PATH = "REACH_IDENTITY_PATH"
ENV_HTTP_TIMEOUT = "REACH_HTTP_TIMEOUT"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class ReachConfig:
    """Server-side settings.

    Attributes:
        host: Bind address.
        port: Bind port.
        audience: Identifier of this service, carried in every challenge.
        allow_signed_requests: Accept the direct-signature register/deregister
            mode in addition to bearer sessions.
        default_ttl_seconds: Registration ttl when the body omits one.
        max_ttl_seconds: Largest registration ttl accepted.
        session_ttl_seconds: Validity window of a handshake session.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    audience: str = DEFAULT_AUDIENCE
    allow_signed_requests: bool = False
    default_ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_ttl_seconds: int = MAX_TTL_SECONDS
    session_ttl_seconds: int = SESSION_TTL_SECONDS

    @classmethod
    def from_env(cls, **overrides: object) -> ReachConfig:
        """Build a config from REACH_* variables; ``overrides`` that are not None win."""
        values: dict[str, object] = {
            "host": os.environ.get(ENV_HOST, DEFAULT_HOST),
            "port": int(os.environ.get(ENV_PORT, str(DEFAULT_PORT))),
            "audience": os.environ.get(ENV_AUDIENCE, DEFAULT_AUDIENCE),
            "allow_signed_requests": _env_flag(ENV_ALLOW_SIGNED_REQUESTS),
            "max_ttl_seconds": int(os.environ.get(ENV_MAX_TTL, str(MAX_TTL_SECONDS))),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


def registry_url_from_env() -> str:
    return os.environ.get(ENV_REGISTRY_URL, DEFAULT_REGISTRY_URL).rstrip("/")


def identity_path_from_env() -> Path:
    raw = os.environ.get(ENV_IDENTITY_PATH)
    path = Path(raw) if raw else DEFAULT_IDENTITY_PATH
    return path.expanduser()


def http_timeout_from_env() -> float:
    return float(os.environ.get(ENV_HTTP_TIMEOUT, str(DEFAULT_HTTP_TIMEOUT)))
