"""agent-reach models.

Pydantic models for stored entities (registry entries, challenges,
sessions) and for the bodies exchanged over HTTP.
"""

from reach.models.base import ReachBaseModel, ReachRequestModel
from reach.models.constants import (
    DEFAULT_TTL_SECONDS,
    DID_KEY_PREFIX,
    PROTOCOL_VERSION,
    SESSION_TTL_SECONDS,
)
from reach.models.entities import (
    AgentStatus,
    AuthenticatedSession,
    Challenge,
    RegistryEntry,
)
from reach.models.payloads import (
    DeregisterResponse,
    HelloRequest,
    LookupResponse,
    ProofAccepted,
    ProofRequest,
    RegisterResponse,
    SessionRegisterRequest,
    SignedDeregisterRequest,
    SignedRegisterRequest,
)

__all__ = [
    "AgentStatus",
    "AuthenticatedSession",
    "Challenge",
    "DEFAULT_TTL_SECONDS",
    "DID_KEY_PREFIX",
    "DeregisterResponse",
    "HelloRequest",
    "LookupResponse",
    "PROTOCOL_VERSION",
    "ProofAccepted",
    "ProofRequest",
    "ReachBaseModel",
    "ReachRequestModel",
    "RegisterResponse",
    "RegistryEntry",
    "SESSION_TTL_SECONDS",
    "SessionRegisterRequest",
    "SignedDeregisterRequest",
    "SignedRegisterRequest",
]
