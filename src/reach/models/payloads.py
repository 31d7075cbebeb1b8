"""Request and response bodies of the HTTP surface.

Inbound bodies (ReachRequestModel) ignore unknown fields; outbound bodies
(ReachBaseModel) are strict and frozen.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, StrictInt

from reach.models.base import ReachBaseModel, ReachRequestModel
from reach.models.constants import (
    MSG_TYPE_HELLO,
    MSG_TYPE_PROOF,
    PROTOCOL_VERSION,
)
from reach.models.entities import AgentStatus

# JSON integers only: booleans, strings and floats are rejected rather than coerced.
Ttl = Annotated[StrictInt, Field(gt=0)]


class HelloRequest(ReachRequestModel):
    """Opening message of the handshake: the caller claims a DID."""

    msg_type: str = Field(default=MSG_TYPE_HELLO, alias="type")
    version: str = PROTOCOL_VERSION
    did: str
    protocols: list[str] = Field(default_factory=list)
    timestamp: int | None = None


class ProofRequest(ReachRequestModel):
    """Signed answer to a Challenge, referencing it by canonical hash.

    ``signature`` is the standard base64 encoding of the Ed25519 signature
    over the challenge's canonical bytes.
    """

    msg_type: str = Field(default=MSG_TYPE_PROOF, alias="type")
    version: str = PROTOCOL_VERSION
    challenge_hash: str = Field(..., min_length=1)
    responder_did: str
    signature: str
    timestamp: int | None = None


class ProofAccepted(ReachBaseModel):
    session_id: str
    counter_proof: Any | None = None


class SessionRegisterRequest(ReachRequestModel):
    """Register body when authorized by a bearer session.

    A ``did`` field, if sent, is ignored: the session's DID is used. A missing
    ``ttl`` is filled in from the server's configured default.
    """

    endpoint: str = Field(..., min_length=1)
    ttl: Ttl | None = None
    did: str | None = None


class SignedRegisterRequest(ReachRequestModel):
    """Register body for the direct-signature mode (signature over ``did:endpoint:ttl``)."""

    did: str
    endpoint: str = Field(..., min_length=1)
    ttl: Ttl | None = None
    signature: str


class SignedDeregisterRequest(ReachRequestModel):
    """Deregister body for the direct-signature mode (signature over the DID)."""

    did: str
    signature: str


class RegisterResponse(ReachBaseModel):
    ok: bool
    did: str
    expires_at: int


class DeregisterResponse(ReachBaseModel):
    ok: bool


class LookupResponse(ReachBaseModel):
    did: str
    endpoint: str
    status: AgentStatus
    registered_at: int
    expires_at: int
