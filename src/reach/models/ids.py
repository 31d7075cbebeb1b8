"""Time and identifier sources injected into the stores and the handshake engine.

Every component that reads the clock or mints a random identifier takes
these as constructor arguments, so tests can freeze time and make nonces
and session ids predictable.
"""

import secrets
import time
from collections.abc import Callable

Clock = Callable[[], int]
"""Returns the current wall-clock time in whole Unix seconds."""

TokenSource = Callable[[int], str]
"""Returns an unguessable URL-safe string built from ``nbytes`` random bytes."""


def system_clock() -> int:
    return int(time.time())


def generate_token(nbytes: int) -> str:
    """Cryptographically strong base64url token (no padding).

    Example:
        >>> len(generate_token(32))
        43
    """
    return secrets.token_urlsafe(nbytes)
