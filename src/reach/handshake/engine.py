"""Hello / Challenge / Proof handshake that turns a DID claim into a session.

Per attempt the protocol moves through::

    START --Hello--> CHALLENGE_ISSUED --Proof (hash match, valid sig)--> SESSION_ISSUED
                                     \\--Proof (unknown hash / bad sig)--> FAILED

The engine itself keeps no state: outstanding challenges live in a
ChallengeStore and issued sessions in a SessionStore. A challenge is
consumed by the first Proof that names it, whether that Proof succeeds or
not, so a failed proof costs the caller a fresh Hello and a replayed proof
is rejected.

Example:
    >>> from reach.crypto import Ed25519DidKey
    >>> engine = HandshakeEngine(Ed25519DidKey(), ChallengeStore(), SessionStore())
    >>> challenge = engine.hello(HelloRequest(did=my_did))  # doctest: +SKIP
    >>> session = engine.proof(prover.create_proof(challenge))  # doctest: +SKIP
"""

from __future__ import annotations

from reach.crypto.capability import DidCrypto
from reach.crypto.did import validate_did_format
from reach.crypto.signing import canonicalize_challenge, decode_signature
from reach.errors import (
    HandshakeError,
    InvalidChallengeError,
    InvalidSignatureError,
    SessionExpiredError,
    UnauthorizedError,
)
from reach.handshake.stores import ChallengeStore, SessionStore
from reach.models.constants import (
    DEFAULT_AUDIENCE,
    MSG_TYPE_HELLO,
    MSG_TYPE_PROOF,
    NONCE_BYTES,
    PROTOCOL_VERSION,
    SESSION_ID_BYTES,
    SESSION_TTL_SECONDS,
)
from reach.models.entities import AuthenticatedSession, Challenge
from reach.models.ids import Clock, TokenSource, generate_token, system_clock
from reach.models.payloads import HelloRequest, ProofRequest
from reach.observability import get_logger
from reach.utils.sanitization import sanitize_token

logger = get_logger(__name__)


class HandshakeEngine:
    """Issues challenges, verifies proofs and resolves bearer sessions.

    Args:
        crypto: DID parsing / signature verification / challenge hashing.
        challenges: Store of outstanding challenges.
        sessions: Store of issued sessions.
        audience: Identifier of this service, placed in every challenge.
        session_ttl_seconds: Fixed validity window of a session.
        clock: Source of the current Unix time in seconds.
        token_source: Source of unguessable nonces and session ids.
    """

    def __init__(
        self,
        crypto: DidCrypto,
        challenges: ChallengeStore,
        sessions: SessionStore,
        *,
        audience: str = DEFAULT_AUDIENCE,
        session_ttl_seconds: int = SESSION_TTL_SECONDS,
        clock: Clock = system_clock,
        token_source: TokenSource = generate_token,
    ) -> None:
        self._crypto = crypto
        self._challenges = challenges
        self._sessions = sessions
        self._audience = audience
        self._session_ttl = session_ttl_seconds
        self._clock = clock
        self._token_source = token_source

    @property
    def audience(self) -> str:
        return self._audience

    @property
    def session_ttl_seconds(self) -> int:
        return self._session_ttl

    def hello(self, request: HelloRequest) -> Challenge:
        """Issue a fresh challenge for the claimed DID.

        Every call produces an independent challenge, even for a DID that
        already has one outstanding.

        Raises:
            InvalidDidError: If the DID does not parse. No state is created.
            HandshakeError: If the message is not a hello.
        """
        if request.msg_type != MSG_TYPE_HELLO:
            raise HandshakeError(
                f"expected message type {MSG_TYPE_HELLO!r}, got {request.msg_type!r}"
            )
        validate_did_format(request.did)
        self._crypto.parse_did(request.did)

        challenge = Challenge(
            version=PROTOCOL_VERSION,
            nonce=self._token_source(NONCE_BYTES),
            timestamp=self._clock(),
            audience=self._audience,
            issuer=request.did,
        )
        challenge_hash = self._crypto.hash_canonical(challenge)
        self._challenges.put(challenge_hash, challenge)
        logger.info(
            "reach.handshake.challenge_issued",
            did=request.did,
            challenge_hash=sanitize_token(challenge_hash),
            client_version=request.version,
        )
        return challenge

    def proof(self, request: ProofRequest) -> AuthenticatedSession:
        """Verify a proof and mint a session bound to the challenge's DID.

        Raises:
            InvalidChallengeError: If the hash was never issued or already consumed.
            InvalidSignatureError: If the responder is not the challenge issuer
                or the signature does not verify. The challenge stays consumed.
            HandshakeError: If the message is not a proof.
        """
        if request.msg_type != MSG_TYPE_PROOF:
            raise HandshakeError(
                f"expected message type {MSG_TYPE_PROOF!r}, got {request.msg_type!r}"
            )
        challenge = self._challenges.take(request.challenge_hash)
        if challenge is None:
            logger.warning(
                "reach.handshake.unknown_challenge",
                challenge_hash=sanitize_token(request.challenge_hash),
                did=request.responder_did,
            )
            raise InvalidChallengeError(request.challenge_hash)

        if request.responder_did != challenge.issuer:
            logger.warning(
                "reach.handshake.proof_rejected",
                reason="responder_mismatch",
                did=challenge.issuer,
                responder_did=request.responder_did,
            )
            raise InvalidSignatureError(
                "Responder DID does not match challenge issuer",
                details={"issuer": challenge.issuer, "responder_did": request.responder_did},
            )

        public_key = self._crypto.parse_did(challenge.issuer)
        signature = decode_signature(request.signature)
        if not self._crypto.verify(public_key, canonicalize_challenge(challenge), signature):
            logger.warning(
                "reach.handshake.proof_rejected",
                reason="bad_signature",
                did=challenge.issuer,
            )
            raise InvalidSignatureError(details={"did": challenge.issuer})

        session = AuthenticatedSession(
            session_id=self._token_source(SESSION_ID_BYTES),
            did=challenge.issuer,
            created_at=self._clock(),
        )
        self._sessions.put(session)
        logger.info(
            "reach.handshake.session_issued",
            did=session.did,
            session_id=sanitize_token(session.session_id),
        )
        return session

    def authenticate(self, session_id: str) -> AuthenticatedSession:
        """Resolve a bearer credential to its live session.

        An expired session is left in the store; it keeps failing this
        check until its DID deregisters.

        Raises:
            UnauthorizedError: If no session has this id.
            SessionExpiredError: If the session is older than the validity window.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise UnauthorizedError("Invalid session")
        if not session.is_valid(self._clock(), self._session_ttl):
            raise SessionExpiredError(session.did, session.created_at)
        return session

    def revoke(self, did: str) -> int:
        """Drop every session bound to ``did``."""
        revoked = self._sessions.revoke_did(did)
        if revoked:
            logger.info("reach.handshake.sessions_revoked", did=did, count=revoked)
        return revoked


__all__ = ["HandshakeEngine"]
