"""Shared pytest fixtures for agent-reach tests.

Time, randomness and crypto are injected everywhere in the registry core, so
most tests run against:
- FakeClock: a settable clock in whole Unix seconds
- CountingTokenSource: predictable nonces and session ids
- FakeDidCrypto: accepts any ``did:key:z...`` and "signs" with SHA-256, so
  handshake logic can be tested without real keys

End-to-end tests use real Ed25519 identities through the ``prover`` fixtures.
"""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable
from typing import Any

import pytest
from fastapi import FastAPI

from reach.config import ReachConfig
from reach.crypto.did import validate_did_format
from reach.crypto.keys import generate_keypair
from reach.crypto.signing import challenge_hash
from reach.errors import InvalidDidError
from reach.handshake.engine import HandshakeEngine
from reach.handshake.prover import Prover
from reach.handshake.stores import ChallengeStore, SessionStore
from reach.models.entities import Challenge
from reach.registry.store import RegistryStore
from reach.transport.handlers import RegistryService
from reach.transport.server import create_app

START_TIME = 1_700_000_000


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class CountingTokenSource:
    """Token source yielding ``tok-0001``, ``tok-0002``, ..."""

    def __init__(self) -> None:
        self.issued: list[str] = []

    def __call__(self, nbytes: int) -> str:
        token = f"tok-{len(self.issued) + 1:04d}"
        self.issued.append(token)
        return token


def fake_sign(did: str, message: bytes) -> bytes:
    return hashlib.sha256(did.encode("utf-8") + b"|" + message).digest()


def fake_sign_b64(did: str, message: bytes) -> str:
    return base64.b64encode(fake_sign(did, message)).decode("ascii")


class FakeDidCrypto:
    """DidCrypto where the public key handle is the DID itself."""

    def parse_did(self, did: str) -> Any:
        validate_did_format(did)
        if not did.startswith("did:key:z"):
            raise InvalidDidError(did, "fake crypto only accepts did:key:z...")
        return did

    def verify(self, public_key: Any, message: bytes, signature: bytes) -> bool:
        return signature == fake_sign(public_key, message)

    def hash_canonical(self, challenge: Challenge) -> str:
        return challenge_hash(challenge)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_source() -> CountingTokenSource:
    return CountingTokenSource()


@pytest.fixture
def fake_crypto() -> FakeDidCrypto:
    return FakeDidCrypto()


@pytest.fixture
def sign_fake() -> Callable[[str, bytes], str]:
    """Base64 signature that FakeDidCrypto accepts for (did, message)."""
    return fake_sign_b64


@pytest.fixture
def registry() -> RegistryStore:
    return RegistryStore()


@pytest.fixture
def challenges() -> ChallengeStore:
    return ChallengeStore()


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def engine(
    fake_crypto: FakeDidCrypto,
    challenges: ChallengeStore,
    sessions: SessionStore,
    clock: FakeClock,
    token_source: CountingTokenSource,
) -> HandshakeEngine:
    """Handshake engine over the fake crypto, frozen clock and counting tokens."""
    return HandshakeEngine(
        fake_crypto,
        challenges,
        sessions,
        clock=clock,
        token_source=token_source,
    )


@pytest.fixture
def make_service(
    registry: RegistryStore,
    engine: HandshakeEngine,
    fake_crypto: FakeDidCrypto,
    clock: FakeClock,
) -> Callable[..., RegistryService]:
    """Factory for RegistryService sharing the fixture engine and stores."""

    def _make(**config_kwargs: Any) -> RegistryService:
        return RegistryService(
            registry,
            engine,
            fake_crypto,
            config=ReachConfig(**config_kwargs),
            clock=clock,
        )

    return _make


@pytest.fixture
def make_app(clock: FakeClock, token_source: CountingTokenSource) -> Callable[..., FastAPI]:
    """Factory for a registry app with real Ed25519 crypto and the fixture clock."""

    def _make(**config_kwargs: Any) -> FastAPI:
        return create_app(
            ReachConfig(**config_kwargs),
            clock=clock,
            token_source=token_source,
        )

    return _make


@pytest.fixture
def prover() -> Prover:
    private_key, _ = generate_keypair()
    return Prover(private_key)


@pytest.fixture
def other_prover() -> Prover:
    private_key, _ = generate_keypair()
    return Prover(private_key)
