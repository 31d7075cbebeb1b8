"""Tests for RegistryService: authorization modes, register, deregister, lookup."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from reach.crypto.signing import (
    canonicalize_challenge,
    challenge_hash,
    deregister_message,
    register_message,
)
from reach.errors import (
    ExpiredError,
    InvalidDidError,
    InvalidRequestError,
    InvalidSignatureError,
    NotFoundError,
    SessionExpiredError,
    UnauthorizedError,
)
from reach.models.entities import AgentStatus
from reach.registry.store import RegistryStore
from reach.transport.handlers import RegistryService, extract_bearer_token

ALICE = "did:key:zAlice"
BOB = "did:key:zBob"

Signer = Callable[[str, bytes], str]


def _login(service: RegistryService, sign: Signer, did: str = ALICE) -> str:
    challenge = service.hello({"type": "hello", "version": "1.0", "did": did, "protocols": []})
    accepted = service.proof(
        {
            "type": "proof",
            "version": "1.0",
            "challenge_hash": challenge_hash(challenge),
            "responder_did": did,
            "signature": sign(did, canonicalize_challenge(challenge)),
        }
    )
    assert accepted.counter_proof is None
    return f"Bearer {accepted.session_id}"


@pytest.fixture
def service(make_service: Callable[..., RegistryService]) -> RegistryService:
    return make_service()


@pytest.fixture
def signed_service(make_service: Callable[..., RegistryService]) -> RegistryService:
    return make_service(allow_signed_requests=True)


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc", "abc"),
            ("Bearer  abc ", "abc"),
            ("Basic abc", None),
            ("bearer abc", None),
            ("Bearer ", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header: str | None, expected: str | None) -> None:
        assert extract_bearer_token(header) == expected


class TestSessionRegister:
    def test_register_uses_session_did(
        self, service: RegistryService, registry: RegistryStore, sign_fake: Signer, clock
    ) -> None:
        auth = _login(service, sign_fake)
        response = service.register({"endpoint": "https://a.example", "ttl": 60}, auth)
        assert response.ok is True
        assert response.did == ALICE
        assert response.expires_at == clock.now + 60
        entry = registry.lookup(ALICE)
        assert entry is not None and entry.registered_at == clock.now

    def test_body_did_is_ignored(
        self, service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        auth = _login(service, sign_fake)
        response = service.register({"endpoint": "https://a.example", "did": BOB}, auth)
        assert response.did == ALICE
        assert registry.lookup(BOB) is None

    def test_default_ttl(self, service: RegistryService, sign_fake: Signer, clock) -> None:
        auth = _login(service, sign_fake)
        response = service.register({"endpoint": "https://a.example"}, auth)
        assert response.expires_at == clock.now + 3600

    def test_configured_default_ttl(self, make_service, sign_fake: Signer, clock) -> None:
        service = make_service(default_ttl_seconds=60)
        auth = _login(service, sign_fake)
        response = service.register({"endpoint": "https://a.example"}, auth)
        assert response.expires_at == clock.now + 60

    def test_missing_header(self, service: RegistryService) -> None:
        with pytest.raises(UnauthorizedError):
            service.register({"endpoint": "https://a.example"}, None)

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "garbage"])
    def test_malformed_header(self, service: RegistryService, header: str) -> None:
        with pytest.raises(UnauthorizedError):
            service.register({"endpoint": "https://a.example"}, header)

    def test_unknown_session(self, service: RegistryService) -> None:
        with pytest.raises(UnauthorizedError):
            service.register({"endpoint": "https://a.example"}, "Bearer unknown")

    def test_expired_session(self, service: RegistryService, sign_fake: Signer, clock) -> None:
        auth = _login(service, sign_fake)
        clock.advance(301)
        with pytest.raises(SessionExpiredError):
            service.register({"endpoint": "https://a.example"}, auth)

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"endpoint": ""},
            {"endpoint": "https://a", "ttl": 0},
            {"endpoint": "https://a", "ttl": "x"},
            {"endpoint": "https://a", "ttl": "60"},
            {"endpoint": "https://a", "ttl": True},
            {"endpoint": "https://a", "ttl": 60.0},
        ],
    )
    def test_invalid_body(self, service: RegistryService, sign_fake: Signer, body: dict) -> None:
        auth = _login(service, sign_fake)
        with pytest.raises(InvalidRequestError):
            service.register(body, auth)

    def test_ttl_above_maximum(self, make_service, sign_fake: Signer) -> None:
        service = make_service(max_ttl_seconds=100)
        auth = _login(service, sign_fake)
        with pytest.raises(InvalidRequestError, match="ttl"):
            service.register({"endpoint": "https://a", "ttl": 101}, auth)

    def test_signed_body_without_flag_is_unauthorized(
        self, service: RegistryService, sign_fake: Signer
    ) -> None:
        body = {
            "did": ALICE,
            "endpoint": "https://a",
            "ttl": 60,
            "signature": sign_fake(ALICE, register_message(ALICE, "https://a", 60)),
        }
        with pytest.raises(UnauthorizedError):
            service.register(body, None)


class TestSignedRegister:
    def test_valid_signature(
        self, signed_service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        body = {
            "did": ALICE,
            "endpoint": "https://a",
            "ttl": 60,
            "signature": sign_fake(ALICE, register_message(ALICE, "https://a", 60)),
        }
        assert signed_service.register(body, None).did == ALICE
        assert registry.lookup(ALICE) is not None

    def test_signature_over_other_endpoint(
        self, signed_service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        body = {
            "did": ALICE,
            "endpoint": "https://evil",
            "ttl": 60,
            "signature": sign_fake(ALICE, register_message(ALICE, "https://a", 60)),
        }
        with pytest.raises(InvalidSignatureError):
            signed_service.register(body, None)
        assert registry.lookup(ALICE) is None

    def test_boolean_ttl_is_rejected(
        self, signed_service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        body = {
            "did": ALICE,
            "endpoint": "https://a",
            "ttl": True,
            "signature": sign_fake(ALICE, register_message(ALICE, "https://a", 1)),
        }
        with pytest.raises(InvalidRequestError):
            signed_service.register(body, None)
        assert registry.lookup(ALICE) is None

    def test_invalid_did(self, signed_service: RegistryService) -> None:
        body = {"did": "did:web:x", "endpoint": "https://a", "ttl": 60, "signature": "AAAA"}
        with pytest.raises(InvalidDidError):
            signed_service.register(body, None)

    def test_session_takes_precedence(
        self, signed_service: RegistryService, sign_fake: Signer
    ) -> None:
        auth = _login(signed_service, sign_fake, did=BOB)
        body = {"did": ALICE, "endpoint": "https://a", "ttl": 60, "signature": "AAAA"}
        assert signed_service.register(body, auth).did == BOB

    def test_signed_deregister(
        self, signed_service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        auth = _login(signed_service, sign_fake)
        signed_service.register({"endpoint": "https://a"}, auth)
        body = {"did": ALICE, "signature": sign_fake(ALICE, deregister_message(ALICE))}
        assert signed_service.deregister(body, None).ok is True
        assert registry.lookup(ALICE) is None

    def test_signed_deregister_bad_signature(
        self, signed_service: RegistryService, sign_fake: Signer
    ) -> None:
        body = {"did": ALICE, "signature": sign_fake(BOB, deregister_message(ALICE))}
        with pytest.raises(InvalidSignatureError):
            signed_service.deregister(body, None)


class TestDeregister:
    def test_removes_entry_and_revokes_sessions(
        self, service: RegistryService, registry: RegistryStore, sign_fake: Signer
    ) -> None:
        auth = _login(service, sign_fake)
        other_auth = _login(service, sign_fake)
        service.register({"endpoint": "https://a"}, auth)
        assert service.deregister({}, auth).ok is True
        assert registry.lookup(ALICE) is None
        for header in (auth, other_auth):
            with pytest.raises(UnauthorizedError):
                service.register({"endpoint": "https://a"}, header)

    def test_absent_entry_is_not_an_error(self, service: RegistryService, sign_fake: Signer) -> None:
        auth = _login(service, sign_fake)
        assert service.deregister({}, auth).ok is False

    def test_requires_authorization(self, service: RegistryService) -> None:
        with pytest.raises(UnauthorizedError):
            service.deregister({}, None)


class TestLookup:
    def test_online_entry(self, service: RegistryService, sign_fake: Signer, clock) -> None:
        auth = _login(service, sign_fake)
        service.register({"endpoint": "https://a", "ttl": 60}, auth)
        response = service.lookup(ALICE)
        assert response.endpoint == "https://a"
        assert response.status is AgentStatus.ONLINE
        assert response.registered_at == clock.now
        assert response.expires_at == clock.now + 60

    def test_expired_entry(self, service: RegistryService, sign_fake: Signer, clock) -> None:
        auth = _login(service, sign_fake)
        service.register({"endpoint": "https://a", "ttl": 60}, auth)
        clock.advance(60)
        assert service.lookup(ALICE).status is AgentStatus.ONLINE
        clock.advance(1)
        with pytest.raises(ExpiredError) as exc_info:
            service.lookup(ALICE)
        assert exc_info.value.status_code == 410

    def test_unknown(self, service: RegistryService) -> None:
        with pytest.raises(NotFoundError):
            service.lookup("did:key:zNobody")

    def test_malformed(self, service: RegistryService) -> None:
        with pytest.raises(InvalidDidError):
            service.lookup("alice")

    def test_reregister_revives_expired_entry(
        self, service: RegistryService, sign_fake: Signer, clock
    ) -> None:
        auth = _login(service, sign_fake)
        service.register({"endpoint": "https://old", "ttl": 10}, auth)
        clock.advance(20)
        service.register({"endpoint": "https://new", "ttl": 10}, _login(service, sign_fake))
        assert service.lookup(ALICE).endpoint == "https://new"
