"""``did:key`` encoding for Ed25519 public keys.

A did:key identifier is ``did:key:`` followed by the multibase (base58btc,
prefix ``z``) encoding of the multicodec-tagged public key: ``0xed 0x01``
then the 32 raw key bytes.

Example:
    >>> from reach.crypto.keys import generate_keypair
    >>> _, public_key = generate_keypair()
    >>> did = did_from_public_key(public_key)
    >>> did.startswith("did:key:z6Mk")
    True
"""

from __future__ import annotations

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from reach.crypto.keys import load_public_key_from_bytes, public_key_to_bytes
from reach.errors import InvalidDidError
from reach.models.constants import (
    DID_KEY_PREFIX,
    ED25519_MULTICODEC_PREFIX,
    ED25519_PUBLIC_KEY_LENGTH,
    MULTIBASE_BASE58BTC,
)

MAX_DID_LENGTH = 256


def validate_did_format(did: str) -> None:
    """Cheap shape check run before any decoding or cryptographic work.

    Raises:
        InvalidDidError: If the string is empty, too long, or not a did:key.
    """
    if not did or len(did) > MAX_DID_LENGTH:
        raise InvalidDidError(did, "empty or too long")
    if not did.startswith(DID_KEY_PREFIX) or len(did) == len(DID_KEY_PREFIX):
        raise InvalidDidError(did, f"must start with {DID_KEY_PREFIX!r}")


def did_from_public_key(key: Ed25519PublicKey) -> str:
    encoded = base58.b58encode(ED25519_MULTICODEC_PREFIX + public_key_to_bytes(key))
    return f"{DID_KEY_PREFIX}{MULTIBASE_BASE58BTC}{encoded.decode('ascii')}"


def public_key_from_did(did: str) -> Ed25519PublicKey:
    """Decode the Ed25519 public key embedded in a did:key.

    Raises:
        InvalidDidError: On any shape, encoding, codec or length problem.
    """
    validate_did_format(did)
    multibase = did[len(DID_KEY_PREFIX):]
    if not multibase.startswith(MULTIBASE_BASE58BTC):
        raise InvalidDidError(did, "only base58btc multibase ('z') is supported")
    try:
        decoded = base58.b58decode(multibase[1:])
    except ValueError as e:
        raise InvalidDidError(did, "not valid base58") from e
    if not decoded.startswith(ED25519_MULTICODEC_PREFIX):
        raise InvalidDidError(did, "not an Ed25519 key")
    raw = decoded[len(ED25519_MULTICODEC_PREFIX):]
    if len(raw) != ED25519_PUBLIC_KEY_LENGTH:
        raise InvalidDidError(did, f"key must be {ED25519_PUBLIC_KEY_LENGTH} bytes, got {len(raw)}")
    try:
        return load_public_key_from_bytes(raw)
    except ValueError as e:
        raise InvalidDidError(did, "not a valid Ed25519 key") from e
