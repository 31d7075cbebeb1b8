"""Tests for ChallengeStore and SessionStore."""

from __future__ import annotations

import threading

from reach.handshake.stores import ChallengeStore, SessionStore
from reach.models.entities import AuthenticatedSession, Challenge


def _challenge(issuer: str = "did:key:zAlice", nonce: str = "n1") -> Challenge:
    return Challenge(nonce=nonce, timestamp=1, issuer=issuer)


def _session(session_id: str, did: str = "did:key:zAlice") -> AuthenticatedSession:
    return AuthenticatedSession(session_id=session_id, did=did, created_at=1)


class TestChallengeStore:
    def test_take_removes(self, challenges: ChallengeStore) -> None:
        challenge = _challenge()
        challenges.put("h1", challenge)
        assert "h1" in challenges
        assert challenges.take("h1") == challenge
        assert "h1" not in challenges
        assert challenges.take("h1") is None

    def test_take_unknown_returns_none(self, challenges: ChallengeStore) -> None:
        assert challenges.take("missing") is None

    def test_outstanding_challenges_are_independent(self, challenges: ChallengeStore) -> None:
        challenges.put("h1", _challenge(nonce="a"))
        challenges.put("h2", _challenge(nonce="b"))
        assert len(challenges) == 2
        challenges.take("h1")
        assert "h2" in challenges

    def test_concurrent_take_yields_exactly_one_winner(self) -> None:
        store = ChallengeStore()
        store.put("h", _challenge())
        results: list[Challenge | None] = []
        lock = threading.Lock()
        barrier = threading.Barrier(16)

        def taker() -> None:
            barrier.wait()
            got = store.take("h")
            with lock:
                results.append(got)

        threads = [threading.Thread(target=taker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r is not None) == 1


class TestSessionStore:
    def test_put_get(self, sessions: SessionStore) -> None:
        session = _session("s1")
        sessions.put(session)
        assert sessions.get("s1") == session
        assert sessions.get("s2") is None

    def test_revoke_did_removes_only_that_did(self, sessions: SessionStore) -> None:
        sessions.put(_session("a1"))
        sessions.put(_session("a2"))
        sessions.put(_session("b1", did="did:key:zBob"))
        assert sessions.revoke_did("did:key:zAlice") == 2
        assert sessions.get("a1") is None
        assert sessions.get("a2") is None
        assert sessions.get("b1") is not None
        assert len(sessions) == 1

    def test_revoke_unknown_did_is_noop(self, sessions: SessionStore) -> None:
        assert sessions.revoke_did("did:key:zNobody") == 0
