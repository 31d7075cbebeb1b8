"""Signed-message construction and signature encoding.

Two kinds of message are signed in agent-reach:

- a Challenge, signed over its JCS canonical JSON (RFC 8785) during the
  handshake, and referenced by the SHA-256 of those same bytes;
- the fixed strings of the direct-signature mode: ``did:endpoint:ttl`` for
  register and the bare DID for deregister.

Signatures travel as standard base64 of the 64 raw Ed25519 bytes.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from typing import cast

import jcs
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from reach.errors import InvalidSignatureError
from reach.models.entities import Challenge


def canonicalize_challenge(challenge: Challenge) -> bytes:
    return cast(bytes, jcs.canonicalize(challenge.to_wire()))


def challenge_hash(challenge: Challenge) -> str:
    """Lowercase hex SHA-256 of the canonical challenge bytes."""
    return hashlib.sha256(canonicalize_challenge(challenge)).hexdigest()


def register_message(did: str, endpoint: str, ttl: int) -> bytes:
    return f"{did}:{endpoint}:{ttl}".encode("utf-8")


def deregister_message(did: str) -> bytes:
    return did.encode("utf-8")


def sign_message(private_key: Ed25519PrivateKey, message: bytes) -> str:
    raw_signature = private_key.sign(message)
    return base64.b64encode(raw_signature).decode("ascii")


def sign_challenge(private_key: Ed25519PrivateKey, challenge: Challenge) -> str:
    return sign_message(private_key, canonicalize_challenge(challenge))


def decode_signature(signature_b64: str) -> bytes:
    """Decode a base64 signature.

    Length is not checked here; that is the verifying capability's concern.

    Raises:
        InvalidSignatureError: If the value is empty or not base64.
    """
    try:
        raw = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSignatureError(
            "Invalid signature encoding (base64)",
            details={"cause": str(e)},
        ) from e
    if not raw:
        raise InvalidSignatureError("Empty signature")
    return raw
