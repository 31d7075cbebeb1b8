"""FastAPI application for the agent-reach discovery registry.

Routes:
    GET    /health          Liveness check, plain ``ok``.
    POST   /hello           Hello -> Challenge.
    POST   /proof           Proof -> ``{"session_id", "counter_proof"}``.
    POST   /register        Publish the caller's endpoint.
    POST   /deregister      Remove the caller's entry (DELETE is accepted too).
    GET    /lookup/{did}    Resolve a DID to its endpoint.

Every failure is a JSON object ``{"error": <message>}`` with the status code
of the raised ReachError, or of the routing failure for unknown paths and
methods. Anything unexpected becomes a 500 with a generic message and the
traceback goes to the log only.

Example:
    >>> from reach.transport.server import create_app
    >>> app = create_app()
    >>> # uvicorn.run(app, host="0.0.0.0", port=3001)
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import unquote

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import reach
from reach.config import ReachConfig
from reach.crypto.capability import DidCrypto, Ed25519DidKey
from reach.errors import InternalError, InvalidRequestError, ReachError
from reach.handshake.engine import HandshakeEngine
from reach.handshake.stores import ChallengeStore, SessionStore
from reach.models.ids import Clock, TokenSource, generate_token, system_clock
from reach.observability import get_logger, sanitize_for_logging
from reach.registry.store import RegistryStore
from reach.transport.handlers import RegistryService
from reach.transport.middleware import (
    MAX_REQUEST_SIZE,
    RequestLoggingMiddleware,
    SizeLimitMiddleware,
)

logger = get_logger(__name__)


async def _read_json(request: Request) -> dict[str, Any]:
    """Decode the request body as a JSON object; an empty body reads as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidRequestError("body is not valid JSON") from e
    if not isinstance(body, dict):
        raise InvalidRequestError("body must be a JSON object")
    return body


async def reach_error_handler(request: Request, exc: ReachError) -> JSONResponse:
    details = sanitize_for_logging(exc.details)
    if exc.status_code >= 500:
        logger.error("reach.request.failed", path=request.url.path, code=exc.code, details=details)
    else:
        logger.info(
            "reach.request.rejected",
            path=request.url.path,
            code=exc.code,
            status_code=exc.status_code,
            details=details,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing failures (unknown path, wrong method) in the same ``{"error"}`` shape."""
    logger.info(
        "reach.request.rejected",
        path=request.url.path,
        code="http_error",
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("reach.request.unhandled_error", path=request.url.path)
    error = InternalError(type(exc).__name__)
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def create_app(
    config: ReachConfig | None = None,
    *,
    registry: RegistryStore | None = None,
    crypto: DidCrypto | None = None,
    clock: Clock | None = None,
    token_source: TokenSource | None = None,
    max_request_size: int = MAX_REQUEST_SIZE,
) -> FastAPI:
    """Create the registry application.

    Each call builds its own stores, so two apps never share state.

    Args:
        config: Server settings. Defaults to ``ReachConfig.from_env()``.
        registry: Pre-populated registry store, mainly for tests.
        crypto: DID capability. Defaults to Ed25519 did:key.
        clock: Current Unix seconds. Defaults to the system clock.
        token_source: Nonce / session id source. Defaults to ``secrets.token_urlsafe``.
        max_request_size: Largest accepted request body in bytes.

    Returns:
        Configured FastAPI app; the service is reachable as ``app.state.service``.
    """
    config = config or ReachConfig.from_env()
    crypto = crypto or Ed25519DidKey()
    clock = clock or system_clock
    registry = registry if registry is not None else RegistryStore()

    engine = HandshakeEngine(
        crypto,
        ChallengeStore(),
        SessionStore(),
        audience=config.audience,
        session_ttl_seconds=config.session_ttl_seconds,
        clock=clock,
        token_source=token_source or generate_token,
    )
    service = RegistryService(registry, engine, crypto, config=config, clock=clock)

    app = FastAPI(
        title="agent-reach",
        description="DID-keyed discovery registry for agents",
        version=reach.__version__,
    )
    app.state.service = service
    app.state.config = config

    app.add_middleware(SizeLimitMiddleware, max_size=max_request_size)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(ReachError, reach_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)

    if config.allow_signed_requests:
        logger.warning("reach.server.signed_requests_enabled", audience=config.audience)
    logger.info(
        "reach.server.created",
        audience=config.audience,
        session_ttl_seconds=config.session_ttl_seconds,
        max_ttl_seconds=config.max_ttl_seconds,
    )

    @app.get("/health")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.post("/hello")
    async def hello(request: Request) -> JSONResponse:
        challenge = service.hello(await _read_json(request))
        return JSONResponse(content=challenge.to_wire())

    @app.post("/proof")
    async def proof(request: Request) -> JSONResponse:
        accepted = service.proof(await _read_json(request))
        return JSONResponse(content=accepted.model_dump())

    @app.post("/register")
    async def register(request: Request) -> JSONResponse:
        body = await _read_json(request)
        response = service.register(body, request.headers.get("authorization"))
        return JSONResponse(content=response.model_dump())

    @app.api_route("/deregister", methods=["POST", "DELETE"])
    async def deregister(request: Request) -> JSONResponse:
        body = await _read_json(request)
        response = service.deregister(body, request.headers.get("authorization"))
        return JSONResponse(content=response.model_dump())

    @app.get("/lookup/{did}")
    async def lookup(did: str) -> JSONResponse:
        # Clients may percent-encode the DID twice.
        response = service.lookup(unquote(did))
        return JSONResponse(content=response.model_dump(mode="json"))

    return app


__all__ = [
    "create_app",
    "http_error_handler",
    "reach_error_handler",
    "unhandled_error_handler",
]
