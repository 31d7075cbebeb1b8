"""Async HTTP client for an agent-reach registry.

ReachClient runs the handshake on demand, caches the resulting session and
presents it as ``Authorization: Bearer`` on register and deregister. When the
registry rejects a cached session (expired or revoked) the client performs a
fresh handshake and retries the call once.

Example:
    >>> from reach.handshake import Prover
    >>> from reach.transport.client import ReachClient
    >>>
    >>> async with ReachClient("https://reach.agent-id.ai", Prover(private_key)) as client:
    ...     await client.register("https://agent.example.com/mcp", ttl=3600)
    ...     entry = await client.lookup(other_did)
    ...     print(entry.endpoint)
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from reach.crypto.signing import deregister_message, register_message, sign_message
from reach.handshake.prover import Prover
from reach.models.constants import BEARER_PREFIX, DEFAULT_TTL_SECONDS
from reach.models.entities import Challenge
from reach.models.payloads import (
    DeregisterResponse,
    LookupResponse,
    ProofAccepted,
    RegisterResponse,
)
from reach.observability import get_logger
from reach.utils.sanitization import sanitize_token, sanitize_url

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class ReachConnectionError(Exception):
    """Raised when the registry cannot be reached or answers with garbage.

    Attributes:
        message: Error description
        cause: Original exception that caused this error
        url: URL that failed (if available)
    """

    def __init__(
        self, message: str, cause: Exception | None = None, url: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.url = url


class ReachClientError(Exception):
    """Raised when the registry answers with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the registry
        error: The ``error`` message from the response body
    """

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(f"Registry error {status_code}: {error}")
        self.status_code = status_code
        self.error = error


class ReachClient:
    """Client for one registry.

    Args:
        base_url: Registry base URL, e.g. ``https://reach.agent-id.ai``.
        prover: Identity used for the handshake. Only ``lookup`` and
            ``health`` work without one.
        timeout: Request timeout in seconds.
        transport: Custom httpx transport, mainly for tests
            (``httpx.ASGITransport(app=...)``).
    """

    def __init__(
        self,
        base_url: str,
        prover: Prover | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {base_url!r}")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._prover = prover
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._session_id: str | None = None

    @property
    def did(self) -> str | None:
        return self._prover.did if self._prover is not None else None

    @property
    def session_id(self) -> str | None:
        """The cached session, or None before the first handshake."""
        return self._session_id

    def clear_session(self) -> None:
        self._session_id = None

    async def __aenter__(self) -> ReachClient:
        self._open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _open(self) -> httpx.AsyncClient:
        if self._client is None:
            if self._transport is not None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url, transport=self._transport, timeout=self.timeout
                )
            else:
                self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> Any:
        headers = {"Authorization": f"{BEARER_PREFIX}{session_id}"} if session_id else None
        url = f"{self.base_url}{path}"
        try:
            response = await self._open().request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise ReachConnectionError(
                f"Request to {sanitize_url(url)} timed out after {self.timeout}s", cause=e, url=url
            ) from e
        except httpx.HTTPError as e:
            raise ReachConnectionError(
                f"Connection to {sanitize_url(url)} failed: {e}", cause=e, url=url
            ) from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ReachConnectionError(
                    f"Invalid JSON from {sanitize_url(url)}", cause=e, url=url
                ) from e

        try:
            error = str(response.json().get("error", response.text))
        except (ValueError, AttributeError):
            error = response.text or response.reason_phrase
        logger.debug(
            "reach.client.error_response",
            method=method,
            path=path,
            status_code=response.status_code,
            error=error,
        )
        raise ReachClientError(response.status_code, error)

    def _require_prover(self) -> Prover:
        if self._prover is None:
            raise ValueError("this operation needs an identity; construct the client with a Prover")
        return self._prover

    async def health(self) -> bool:
        try:
            await self._request("GET", "/health")
        except (ReachConnectionError, ReachClientError):
            return False
        return True

    async def hello(self) -> Challenge:
        prover = self._require_prover()
        data = await self._request(
            "POST", "/hello", json=prover.hello().model_dump(by_alias=True, exclude_none=True)
        )
        try:
            return Challenge.model_validate(data)
        except ValidationError as e:
            raise ReachConnectionError("Malformed challenge from registry", cause=e) from e

    async def proof(self, challenge: Challenge) -> str:
        prover = self._require_prover()
        proof = prover.create_proof(challenge)
        data = await self._request(
            "POST", "/proof", json=proof.model_dump(by_alias=True, exclude_none=True)
        )
        try:
            return ProofAccepted.model_validate(data).session_id
        except ValidationError as e:
            raise ReachConnectionError("Malformed proof response from registry", cause=e) from e

    async def authenticate(self) -> str:
        """Return the cached session, running the handshake first if there is none."""
        if self._session_id is None:
            challenge = await self.hello()
            self._session_id = await self.proof(challenge)
            logger.info(
                "reach.client.authenticated",
                did=self.did,
                session_id=sanitize_token(self._session_id),
            )
        return self._session_id

    async def _authorized(self, method: str, path: str, body: dict[str, Any]) -> Any:
        reused = self._session_id is not None
        session_id = await self.authenticate()
        try:
            return await self._request(method, path, json=body, session_id=session_id)
        except ReachClientError as e:
            if e.status_code != 401 or not reused:
                raise
            logger.info("reach.client.reauthenticating", did=self.did, error=e.error)
            self.clear_session()
            session_id = await self.authenticate()
            return await self._request(method, path, json=body, session_id=session_id)

    async def register(self, endpoint: str, ttl: int | None = None) -> RegisterResponse:
        """Publish ``endpoint``; without ``ttl`` the registry applies its default."""
        body: dict[str, Any] = {"endpoint": endpoint}
        if ttl is not None:
            body["ttl"] = ttl
        data = await self._authorized("POST", "/register", body)
        return RegisterResponse.model_validate(data)

    async def deregister(self) -> DeregisterResponse:
        """Remove this identity's entry. The registry revokes the session, so it is dropped here too."""
        data = await self._authorized("POST", "/deregister", {})
        self.clear_session()
        return DeregisterResponse.model_validate(data)

    async def register_signed(self, endpoint: str, ttl: int | None = None) -> RegisterResponse:
        """Register with a per-request signature instead of a session.

        Only accepted by registries running with signed requests enabled.
        """
        prover = self._require_prover()
        ttl = DEFAULT_TTL_SECONDS if ttl is None else ttl
        signature = sign_message(prover.private_key, register_message(prover.did, endpoint, ttl))
        data = await self._request(
            "POST",
            "/register",
            json={"did": prover.did, "endpoint": endpoint, "ttl": ttl, "signature": signature},
        )
        return RegisterResponse.model_validate(data)

    async def deregister_signed(self) -> DeregisterResponse:
        prover = self._require_prover()
        signature = sign_message(prover.private_key, deregister_message(prover.did))
        data = await self._request(
            "POST", "/deregister", json={"did": prover.did, "signature": signature}
        )
        return DeregisterResponse.model_validate(data)

    async def lookup(self, did: str) -> LookupResponse:
        data = await self._request("GET", f"/lookup/{quote(did, safe=':')}")
        return LookupResponse.model_validate(data)


__all__ = [
    "DEFAULT_TIMEOUT",
    "ReachClient",
    "ReachClientError",
    "ReachConnectionError",
]
