"""Client side of the handshake: answer a Challenge with a signed Proof."""

from __future__ import annotations

import time

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from reach.crypto.did import did_from_public_key
from reach.crypto.signing import challenge_hash, sign_challenge
from reach.errors import HandshakeError
from reach.models.constants import MSG_TYPE_CHALLENGE, MSG_TYPE_PROOF, PROTOCOL_VERSION
from reach.models.entities import Challenge
from reach.models.payloads import HelloRequest, ProofRequest


class Prover:
    """Holds an agent's private key and produces Hello and Proof messages.

    Example:
        >>> from reach.crypto import generate_keypair
        >>> private_key, _ = generate_keypair()
        >>> prover = Prover(private_key)
        >>> hello = prover.hello()
        >>> hello.did == prover.did
        True
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self._did = did_from_public_key(private_key.public_key())

    @property
    def did(self) -> str:
        return self._did

    @property
    def private_key(self) -> Ed25519PrivateKey:
        return self._private_key

    def hello(self) -> HelloRequest:
        return HelloRequest(
            did=self._did,
            version=PROTOCOL_VERSION,
            protocols=[],
            timestamp=int(time.time() * 1000),
        )

    def create_proof(
        self, challenge: Challenge, expected_audience: str | None = None
    ) -> ProofRequest:
        """Sign ``challenge`` and reference it by its canonical hash.

        Raises:
            HandshakeError: If the challenge was not issued to this prover's
                DID, is not a challenge message, or names an unexpected audience.
        """
        if challenge.msg_type != MSG_TYPE_CHALLENGE:
            raise HandshakeError(f"expected a challenge, got {challenge.msg_type!r}")
        if challenge.issuer != self._did:
            raise HandshakeError(
                "challenge was issued to another DID",
                details={"issuer": challenge.issuer, "did": self._did},
            )
        if expected_audience is not None and challenge.audience != expected_audience:
            raise HandshakeError(
                f"unexpected challenge audience {challenge.audience!r}",
                details={"expected": expected_audience},
            )
        return ProofRequest(
            version=PROTOCOL_VERSION,
            challenge_hash=challenge_hash(challenge),
            responder_did=self._did,
            signature=sign_challenge(self._private_key, challenge),
            timestamp=int(time.time() * 1000),
        )


__all__ = ["Prover"]
