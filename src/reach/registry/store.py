"""In-memory registry of published agent endpoints.

One RegistryEntry per DID. Entries are never swept: an expired entry stays
in the map until it is overwritten by a new register or removed by
deregister. The store returns entries verbatim; deciding whether an entry
is online is the caller's job (see RegistryEntry.status).
"""

from __future__ import annotations

from reach.models.entities import RegistryEntry
from reach.utils.locks import ReadWriteLock


class RegistryStore:
    """Thread-safe DID -> RegistryEntry map.

    Lookups share a read lock; register and deregister take the write lock.

    Example:
        >>> store = RegistryStore()
        >>> entry = RegistryEntry(
        ...     did="did:key:zABC", endpoint="https://a.example/inbox",
        ...     registered_at=100, expires_at=160,
        ... )
        >>> store.register(entry)
        >>> store.lookup("did:key:zABC").endpoint
        'https://a.example/inbox'
        >>> store.deregister("did:key:zABC")
        True
        >>> store.deregister("did:key:zABC")
        False
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._entries: dict[str, RegistryEntry] = {}

    def register(self, entry: RegistryEntry) -> None:
        """Insert or replace the entry for ``entry.did``, including its expiry."""
        with self._lock.write():
            self._entries[entry.did] = entry

    def lookup(self, did: str) -> RegistryEntry | None:
        """Return the stored entry, stale or not, or None if absent."""
        with self._lock.read():
            return self._entries.get(did)

    def deregister(self, did: str) -> bool:
        """Remove the entry for ``did``; return whether one existed."""
        with self._lock.write():
            return self._entries.pop(did, None) is not None

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)


__all__ = ["RegistryStore"]
