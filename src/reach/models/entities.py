"""Core entities held by the registry and handshake stores.

RegistryEntry, Challenge and AuthenticatedSession are immutable snapshots.
Stores replace them wholesale; nothing mutates a record in place. Time-based
properties (entry status, session validity) are computed from a caller-supplied
``now`` at read time and never cached.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from reach.models.base import ReachBaseModel
from reach.models.constants import (
    DEFAULT_AUDIENCE,
    MSG_TYPE_CHALLENGE,
    PROTOCOL_VERSION,
    SESSION_TTL_SECONDS,
)


class AgentStatus(str, Enum):
    """Derived status of a registry entry.

    Example:
        >>> AgentStatus.ONLINE.value
        'online'
    """

    ONLINE = "online"
    EXPIRED = "expired"


class RegistryEntry(ReachBaseModel):
    """One published endpoint, keyed by DID.

    Attributes:
        did: The agent's DID (did:key:...).
        endpoint: Where the agent can be reached (any URI, opaque).
        registered_at: Unix seconds when the registration was accepted.
        expires_at: Unix seconds after which the entry is expired.
    """

    did: str = Field(..., min_length=1)
    endpoint: str = Field(..., min_length=1)
    registered_at: int
    expires_at: int

    @model_validator(mode="after")
    def _check_window(self) -> RegistryEntry:
        if self.expires_at <= self.registered_at:
            raise ValueError("expires_at must be greater than registered_at")
        return self

    def status(self, now: int) -> AgentStatus:
        """Online while ``now <= expires_at``, expired afterwards."""
        if now > self.expires_at:
            return AgentStatus.EXPIRED
        return AgentStatus.ONLINE

    def is_expired(self, now: int) -> bool:
        return self.status(now) is AgentStatus.EXPIRED


class Challenge(ReachBaseModel):
    """Server-issued, single-use structure a prover must sign.

    Serialized on the wire with ``type`` rather than ``msg_type``; use
    :meth:`to_wire` for the canonical JSON-ready dict.
    """

    msg_type: str = Field(default=MSG_TYPE_CHALLENGE, alias="type")
    version: str = PROTOCOL_VERSION
    nonce: str = Field(..., min_length=1)
    timestamp: int
    audience: str = DEFAULT_AUDIENCE
    issuer: str = Field(..., min_length=1)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class AuthenticatedSession(ReachBaseModel):
    """Bearer credential minted after a successful Proof.

    Attributes:
        session_id: Unguessable identifier presented as ``Authorization: Bearer``.
        did: The DID the handshake authenticated; the only DID this session may act on.
        created_at: Unix seconds at issuance.
    """

    session_id: str = Field(..., min_length=1)
    did: str = Field(..., min_length=1)
    created_at: int

    def is_valid(self, now: int, ttl_seconds: int = SESSION_TTL_SECONDS) -> bool:
        """Valid while ``now - created_at <= ttl_seconds``."""
        return now - self.created_at <= ttl_seconds
