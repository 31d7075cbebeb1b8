"""Tests for challenge canonicalization, signed messages and signature decoding."""

from __future__ import annotations

import base64
import hashlib
import json

import pytest

from reach.crypto.keys import generate_keypair
from reach.crypto.signing import (
    canonicalize_challenge,
    challenge_hash,
    decode_signature,
    deregister_message,
    register_message,
    sign_challenge,
    sign_message,
)
from reach.errors import InvalidSignatureError
from reach.models.entities import Challenge


@pytest.fixture
def challenge() -> Challenge:
    return Challenge(
        nonce="bm9uY2U",
        timestamp=1_700_000_000,
        audience="agent-reach",
        issuer="did:key:zAlice",
    )


class TestCanonicalization:
    def test_keys_sorted_without_whitespace(self, challenge: Challenge) -> None:
        canonical = canonicalize_challenge(challenge)
        assert canonical == (
            b'{"audience":"agent-reach","issuer":"did:key:zAlice","nonce":"bm9uY2U",'
            b'"timestamp":1700000000,"type":"challenge","version":"1.0"}'
        )

    def test_uses_wire_field_name_type(self, challenge: Challenge) -> None:
        decoded = json.loads(canonicalize_challenge(challenge))
        assert decoded["type"] == "challenge"
        assert "msg_type" not in decoded

    def test_hash_is_hex_sha256_of_canonical_bytes(self, challenge: Challenge) -> None:
        expected = hashlib.sha256(canonicalize_challenge(challenge)).hexdigest()
        assert challenge_hash(challenge) == expected
        assert len(challenge_hash(challenge)) == 64

    def test_hash_changes_with_any_field(self, challenge: Challenge) -> None:
        other = challenge.model_copy(update={"nonce": "b3RoZXI"})
        assert challenge_hash(other) != challenge_hash(challenge)


class TestMessages:
    def test_register_message_layout(self) -> None:
        assert register_message("did:key:zA", "https://a.example", 60) == (
            b"did:key:zA:https://a.example:60"
        )

    def test_deregister_message_is_the_did(self) -> None:
        assert deregister_message("did:key:zA") == b"did:key:zA"


class TestSigning:
    def test_sign_message_is_standard_base64_of_64_bytes(self) -> None:
        private_key, public_key = generate_keypair()
        signature_b64 = sign_message(private_key, b"hello")
        raw = base64.b64decode(signature_b64, validate=True)
        assert len(raw) == 64
        public_key.verify(raw, b"hello")

    def test_sign_challenge_signs_canonical_bytes(self, challenge: Challenge) -> None:
        private_key, public_key = generate_keypair()
        raw = base64.b64decode(sign_challenge(private_key, challenge))
        public_key.verify(raw, canonicalize_challenge(challenge))


class TestDecodeSignature:
    def test_round_trips_base64(self) -> None:
        assert decode_signature(base64.b64encode(b"\x01" * 64).decode()) == b"\x01" * 64

    @pytest.mark.parametrize("value", ["not base64!", "abc", "####"])
    def test_rejects_non_base64(self, value: str) -> None:
        with pytest.raises(InvalidSignatureError) as exc_info:
            decode_signature(value)
        assert exc_info.value.status_code == 401

    def test_rejects_empty(self) -> None:
        with pytest.raises(InvalidSignatureError):
            decode_signature("")
