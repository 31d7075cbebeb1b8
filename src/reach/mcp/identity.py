"""Agent identity file shared by the CLI and the tool adapter.

The file is JSON holding the raw 32-byte Ed25519 seed in standard base64::

    {"secret_key": "<base64>"}

It is written owner read/write only (0600).
"""

from __future__ import annotations

import json
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from reach.crypto.keys import load_private_key_from_base64, private_key_to_base64

# Restrict the identity file to owner read/write only
IDENTITY_FILE_MODE = 0o600


class IdentityError(Exception):
    """Raised when an identity file is missing or unreadable."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


def load_identity(path: Path) -> Ed25519PrivateKey:
    """Read the private key stored at ``path``.

    Raises:
        IdentityError: If the file is missing, not JSON, or holds an invalid key.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise IdentityError("Identity file not found", path) from e
    except OSError as e:
        raise IdentityError(f"Failed to read identity file ({e.strerror})", path) from e
    try:
        stored = json.loads(content)
        secret_key = stored["secret_key"]
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise IdentityError("Failed to parse identity file", path) from e
    try:
        return load_private_key_from_base64(secret_key)
    except (ValueError, TypeError) as e:
        raise IdentityError(f"Invalid secret key ({e})", path) from e


def save_identity(private_key: Ed25519PrivateKey, path: Path) -> None:
    """Write ``private_key`` to ``path``, creating parent directories.

    Raises:
        OSError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps({"secret_key": private_key_to_base64(private_key)})
    path.write_text(payload + "\n", encoding="utf-8")
    path.chmod(IDENTITY_FILE_MODE)


__all__ = ["IDENTITY_FILE_MODE", "IdentityError", "load_identity", "save_identity"]
