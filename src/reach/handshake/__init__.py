"""Challenge-response handshake: stores, server-side engine and client-side prover."""

from reach.handshake.engine import HandshakeEngine
from reach.handshake.prover import Prover
from reach.handshake.stores import ChallengeStore, SessionStore

__all__ = [
    "ChallengeStore",
    "HandshakeEngine",
    "Prover",
    "SessionStore",
]
