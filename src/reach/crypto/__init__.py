"""Crypto/DID capability for agent-reach: did:key parsing, Ed25519 signing and verification."""

from reach.crypto.capability import DidCrypto, Ed25519DidKey
from reach.crypto.did import did_from_public_key, public_key_from_did, validate_did_format
from reach.crypto.keys import (
    generate_keypair,
    load_private_key_from_base64,
    private_key_to_base64,
)
from reach.crypto.signing import (
    canonicalize_challenge,
    challenge_hash,
    decode_signature,
    deregister_message,
    register_message,
    sign_challenge,
    sign_message,
)

__all__ = [
    "DidCrypto",
    "Ed25519DidKey",
    "canonicalize_challenge",
    "challenge_hash",
    "decode_signature",
    "deregister_message",
    "did_from_public_key",
    "generate_keypair",
    "load_private_key_from_base64",
    "private_key_to_base64",
    "public_key_from_did",
    "register_message",
    "sign_challenge",
    "sign_message",
    "validate_did_format",
]
