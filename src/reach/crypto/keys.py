"""Ed25519 key generation and serialization for agent identities."""

from __future__ import annotations

import base64
import binascii

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from reach.models.constants import ED25519_PUBLIC_KEY_LENGTH


def generate_keypair() -> tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    private_key = Ed25519PrivateKey.generate()
    public_key = private_key.public_key()
    return (private_key, public_key)


def public_key_to_bytes(key: Ed25519PublicKey) -> bytes:
    """Raw 32-byte encoding."""
    raw: bytes = key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return raw


def load_public_key_from_bytes(raw: bytes) -> Ed25519PublicKey:
    """From raw 32 bytes. Raises ValueError if not 32 bytes."""
    if len(raw) != ED25519_PUBLIC_KEY_LENGTH:
        raise ValueError(
            f"Ed25519 public key must be {ED25519_PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return Ed25519PublicKey.from_public_bytes(raw)


def private_key_to_base64(key: Ed25519PrivateKey) -> str:
    """Standard base64 of the raw 32-byte seed (the identity file's ``secret_key``)."""
    raw = key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(raw).decode("ascii")


def load_private_key_from_base64(b64: str) -> Ed25519PrivateKey:
    """From base64 raw 32-byte seed. Raises ValueError if undecodable or not 32 bytes."""
    try:
        raw = base64.b64decode(b64, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Secret key is not valid base64: {e}") from e
    if len(raw) != 32:
        raise ValueError(f"Ed25519 secret key must be 32 bytes, got {len(raw)}")
    return Ed25519PrivateKey.from_private_bytes(raw)
