"""agent-reach Error Taxonomy.

This module defines the error hierarchy for the registry service. Every
domain error carries a stable code, the HTTP status it maps to, and a
message that is safe to show to the caller.
"""
from __future__ import annotations

from typing import Any


class ReachError(Exception):
    """Base exception for all agent-reach errors.

    Attributes:
        code: Stable machine-readable error code (e.g. ``invalid_did``)
        message: Human-readable error message
        details: Optional additional error context (logged, never returned)
        status_code: HTTP status the error maps to
    """

    status_code: int = 400

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidDidError(ReachError):
    """Raised when a DID string is malformed or does not encode a usable key."""

    status_code = 400

    def __init__(self, did: str, reason: str = "", details: dict[str, Any] | None = None) -> None:
        message = "Invalid DID format" if not reason else f"Invalid DID format: {reason}"
        super().__init__(
            code="invalid_did",
            message=message,
            details={"did": did, **(details or {})},
        )
        self.did = did
        self.reason = reason


class InvalidSignatureError(ReachError):
    """Bad signature, undecodable signature, or DID/key mismatch."""

    status_code = 401

    def __init__(self, message: str = "Invalid signature", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="invalid_signature", message=message, details=details or {})


class InvalidChallengeError(ReachError):
    """Raised when a Proof references a challenge that was never issued or already consumed.

    Both cases are reported identically so a replayed Proof cannot be told
    apart from a forged one.
    """

    status_code = 400

    def __init__(self, challenge_hash: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="invalid_challenge",
            message="Invalid or expired challenge",
            details={"challenge_hash": challenge_hash, **(details or {})},
        )
        self.challenge_hash = challenge_hash


class NotFoundError(ReachError):
    """Raised when a DID has no registry entry."""

    status_code = 404

    def __init__(self, did: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="not_found",
            message="Agent not found",
            details={"did": did, **(details or {})},
        )
        self.did = did


class ExpiredError(ReachError):
    """Raised when a DID's registry entry exists but its validity window has passed."""

    status_code = 410

    def __init__(self, did: str, expires_at: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="expired",
            message="Agent registration expired",
            details={"did": did, "expires_at": expires_at, **(details or {})},
        )
        self.did = did
        self.expires_at = expires_at


class UnauthorizedError(ReachError):
    """Missing, malformed or unknown bearer credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: dict[str, Any] | None = None) -> None:
        super().__init__(code="unauthorized", message=message, details=details or {})


class SessionExpiredError(ReachError):
    """Raised when a known session is used after its validity window.

    Distinct from UnauthorizedError so the caller knows a fresh handshake
    (rather than a different credential) is needed.
    """

    status_code = 401

    def __init__(self, did: str, created_at: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="session_expired",
            message="Session expired, please re-authenticate",
            details={"did": did, "created_at": created_at, **(details or {})},
        )
        self.did = did
        self.created_at = created_at


class HandshakeError(ReachError):
    """Malformed handshake message (wrong type tag or unsupported version)."""

    status_code = 400

    def __init__(self, detail: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="handshake_error",
            message=f"Handshake error: {detail}",
            details=details or {},
        )
        self.detail = detail


class InternalError(ReachError):
    """Unexpected failure. The caller only ever sees a generic message."""

    status_code = 500

    def __init__(self, detail: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="internal",
            message="Internal error",
            details={"detail": detail, **(details or {})},
        )
        self.detail = detail


class InvalidRequestError(ReachError):
    """Request body failed validation (missing endpoint, non-positive ttl, bad JSON)."""

    status_code = 400

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="invalid_request",
            message=f"Invalid request: {reason}",
            details=details or {},
        )
        self.reason = reason
