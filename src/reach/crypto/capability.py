"""Crypto/DID capability consumed by the handshake engine and handlers.

The registry core never touches key material directly: it parses DIDs,
verifies signatures and hashes challenges through the DidCrypto protocol.
Ed25519DidKey is the production implementation; tests inject a
deterministic fake.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from reach.crypto.did import public_key_from_did
from reach.crypto.signing import challenge_hash
from reach.models.constants import ED25519_SIGNATURE_LENGTH
from reach.models.entities import Challenge


@runtime_checkable
class DidCrypto(Protocol):
    """Protocol for DID parsing, signature verification and challenge hashing.

    Implementations must be deterministic and side-effect-free.
    """

    def parse_did(self, did: str) -> Any:
        """Return an opaque public-key handle for ``did``.

        Raises:
            InvalidDidError: If the DID cannot be parsed.
        """
        ...

    def verify(self, public_key: Any, message: bytes, signature: bytes) -> bool:
        """Return True if ``signature`` is valid for ``message`` under ``public_key``."""
        ...

    def hash_canonical(self, challenge: Challenge) -> str:
        """Return the deterministic hash a Proof uses to reference ``challenge``."""
        ...


class Ed25519DidKey:
    """DidCrypto over Ed25519 ``did:key`` identifiers."""

    def parse_did(self, did: str) -> Ed25519PublicKey:
        return public_key_from_did(did)

    def verify(self, public_key: Ed25519PublicKey, message: bytes, signature: bytes) -> bool:
        if len(signature) != ED25519_SIGNATURE_LENGTH:
            return False
        try:
            public_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    def hash_canonical(self, challenge: Challenge) -> str:
        return challenge_hash(challenge)
