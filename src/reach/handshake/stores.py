"""In-memory state of the handshake: outstanding challenges and live sessions.

Neither store runs a sweeper. Challenges leave the store only by being
consumed; sessions are checked for expiry when used and removed when
their DID deregisters.
"""

from __future__ import annotations

from reach.models.entities import AuthenticatedSession, Challenge
from reach.utils.locks import ReadWriteLock


class ChallengeStore:
    """Single-use challenges keyed by canonical hash."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._challenges: dict[str, Challenge] = {}

    def put(self, challenge_hash: str, challenge: Challenge) -> None:
        with self._lock.write():
            self._challenges[challenge_hash] = challenge

    def take(self, challenge_hash: str) -> Challenge | None:
        """Atomically remove and return the challenge, or None if absent.

        Of two concurrent takes for the same hash, exactly one gets the
        challenge; this is what makes a replayed Proof fail.
        """
        with self._lock.write():
            return self._challenges.pop(challenge_hash, None)

    def __contains__(self, challenge_hash: object) -> bool:
        with self._lock.read():
            return challenge_hash in self._challenges

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._challenges)


class SessionStore:
    """Bearer sessions keyed by session id."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._sessions: dict[str, AuthenticatedSession] = {}

    def put(self, session: AuthenticatedSession) -> None:
        with self._lock.write():
            self._sessions[session.session_id] = session

    def get(self, session_id: str) -> AuthenticatedSession | None:
        with self._lock.read():
            return self._sessions.get(session_id)

    def revoke_did(self, did: str) -> int:
        """Remove every session bound to ``did``; return how many were removed."""
        with self._lock.write():
            doomed = [sid for sid, s in self._sessions.items() if s.did == did]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._sessions)


__all__ = ["ChallengeStore", "SessionStore"]
