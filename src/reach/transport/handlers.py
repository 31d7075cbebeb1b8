"""Request handlers: the boundary between HTTP bodies and the registry core.

RegistryService maps each operation (hello, proof, register, deregister,
lookup) onto the handshake engine and the stores. It takes already-decoded
JSON bodies and the raw Authorization header, and returns response models
or raises a ReachError; the FastAPI layer only does I/O and status mapping.

Register and deregister accept two authorization modes:

- bearer session (``Authorization: Bearer <session_id>``), the default; the
  DID always comes from the session, never from the body;
- direct per-request signature over a fixed message, only when the service
  is built with ``allow_signed_requests=True``. This mode has no replay
  protection.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from reach.config import ReachConfig
from reach.crypto.capability import DidCrypto
from reach.crypto.did import validate_did_format
from reach.crypto.signing import decode_signature, deregister_message, register_message
from reach.errors import (
    ExpiredError,
    InvalidRequestError,
    InvalidSignatureError,
    NotFoundError,
    UnauthorizedError,
)
from reach.handshake.engine import HandshakeEngine
from reach.models.constants import BEARER_PREFIX
from reach.models.entities import AgentStatus, AuthenticatedSession, Challenge, RegistryEntry
from reach.models.ids import Clock, system_clock
from reach.models.payloads import (
    DeregisterResponse,
    HelloRequest,
    LookupResponse,
    ProofAccepted,
    ProofRequest,
    RegisterResponse,
    SessionRegisterRequest,
    SignedDeregisterRequest,
    SignedRegisterRequest,
)
from reach.observability import get_logger
from reach.registry.store import RegistryStore
from reach.utils.sanitization import sanitize_url

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential from an ``Authorization: Bearer <token>`` value, else None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def _parse_body(model: type[ModelT], body: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_input=False)
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in errors)
        raise InvalidRequestError(
            f"invalid or missing field(s): {fields}",
            details={"errors": errors},
        ) from e


class RegistryService:
    """Registry operations behind the HTTP surface.

    Args:
        registry: Endpoint records.
        engine: Handshake engine (owns the challenge and session stores).
        crypto: Capability used by the direct-signature mode.
        config: Server settings (signed mode flag, ttl bounds).
        clock: Source of the current Unix time in seconds.
    """

    def __init__(
        self,
        registry: RegistryStore,
        engine: HandshakeEngine,
        crypto: DidCrypto,
        *,
        config: ReachConfig | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._registry = registry
        self._engine = engine
        self._crypto = crypto
        self._config = config or ReachConfig()
        self._clock = clock

    @property
    def config(self) -> ReachConfig:
        return self._config

    def hello(self, body: dict[str, Any]) -> Challenge:
        return self._engine.hello(_parse_body(HelloRequest, body))

    def proof(self, body: dict[str, Any]) -> ProofAccepted:
        session = self._engine.proof(_parse_body(ProofRequest, body))
        return ProofAccepted(session_id=session.session_id, counter_proof=None)

    def register(self, body: dict[str, Any], authorization: str | None) -> RegisterResponse:
        """Publish (or replace) the caller's endpoint.

        Raises:
            UnauthorizedError: No usable credential.
            SessionExpiredError: Session older than its validity window.
            InvalidDidError: Signed mode with a malformed DID.
            InvalidSignatureError: Signed mode with a signature that does not verify.
            InvalidRequestError: Missing endpoint or ttl out of bounds.
        """
        if authorization is not None:
            session = self._authenticate(authorization)
            request = _parse_body(SessionRegisterRequest, body)
            did, endpoint, ttl = session.did, request.endpoint, self._ttl(request.ttl)
            mode = "session"
        elif self._signed_mode(body):
            signed = _parse_body(SignedRegisterRequest, body)
            validate_did_format(signed.did)
            ttl = self._ttl(signed.ttl)
            self._verify_signature(
                signed.did,
                register_message(signed.did, signed.endpoint, ttl),
                signed.signature,
            )
            did, endpoint = signed.did, signed.endpoint
            mode = "signature"
        else:
            raise UnauthorizedError("Missing bearer token")

        if ttl > self._config.max_ttl_seconds:
            raise InvalidRequestError(
                f"ttl must not exceed {self._config.max_ttl_seconds} seconds",
                details={"ttl": ttl},
            )

        now = self._clock()
        entry = RegistryEntry(did=did, endpoint=endpoint, registered_at=now, expires_at=now + ttl)
        self._registry.register(entry)
        logger.info(
            "reach.registry.registered",
            did=did,
            endpoint=sanitize_url(endpoint),
            ttl=ttl,
            auth_mode=mode,
        )
        return RegisterResponse(ok=True, did=did, expires_at=entry.expires_at)

    def deregister(self, body: dict[str, Any], authorization: str | None) -> DeregisterResponse:
        """Remove the caller's entry and revoke its sessions.

        ``ok`` reports whether an entry existed; deregistering an absent DID
        is not an error.
        """
        if authorization is not None:
            did = self._authenticate(authorization).did
        elif self._signed_mode(body):
            signed = _parse_body(SignedDeregisterRequest, body)
            validate_did_format(signed.did)
            self._verify_signature(signed.did, deregister_message(signed.did), signed.signature)
            did = signed.did
        else:
            raise UnauthorizedError("Missing bearer token")

        existed = self._registry.deregister(did)
        self._engine.revoke(did)
        if existed:
            logger.info("reach.registry.deregistered", did=did)
        return DeregisterResponse(ok=existed)

    def lookup(self, did: str) -> LookupResponse:
        """Resolve a DID to its endpoint.

        Raises:
            InvalidDidError: Malformed DID.
            NotFoundError: Never registered, or deregistered.
            ExpiredError: Registered but past ``expires_at``.
        """
        validate_did_format(did)
        entry = self._registry.lookup(did)
        if entry is None:
            raise NotFoundError(did)
        if entry.status(self._clock()) is AgentStatus.EXPIRED:
            raise ExpiredError(did, entry.expires_at)
        return LookupResponse(
            did=entry.did,
            endpoint=entry.endpoint,
            status=AgentStatus.ONLINE,
            registered_at=entry.registered_at,
            expires_at=entry.expires_at,
        )

    def _authenticate(self, authorization: str) -> AuthenticatedSession:
        token = extract_bearer_token(authorization)
        if token is None:
            raise UnauthorizedError("Malformed Authorization header, expected 'Bearer <session_id>'")
        return self._engine.authenticate(token)

    def _ttl(self, requested: int | None) -> int:
        return self._config.default_ttl_seconds if requested is None else requested

    def _signed_mode(self, body: dict[str, Any]) -> bool:
        return self._config.allow_signed_requests and "signature" in body

    def _verify_signature(self, did: str, message: bytes, signature_b64: str) -> None:
        public_key = self._crypto.parse_did(did)
        signature = decode_signature(signature_b64)
        if not self._crypto.verify(public_key, message, signature):
            logger.warning("reach.registry.signature_rejected", did=did)
            raise InvalidSignatureError(details={"did": did})


__all__ = ["RegistryService", "extract_bearer_token"]
