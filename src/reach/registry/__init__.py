"""Registry store: time-bounded endpoint records keyed by DID."""

from reach.registry.store import RegistryStore

__all__ = ["RegistryStore"]
