"""
Storage protocol for swappable key-value backends.

The tracking layer only needs get/put/delete/list-by-prefix. Backends that
can commit several writes atomically also implement `apply_batch`, which
lets the entity index write a record and its callsign entry together.

Usage:
    store = MemoryStore()
    index = EntityIndex(store, CONTROLLER)
"""

from typing import Iterable, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Narrow key-value interface. Values are strings."""

    def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if absent."""
        ...

    def put(self, key: str, value: str) -> None:
        """Create or overwrite key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is a no-op."""
        ...

    def list_keys(self, prefix: str) -> List[str]:
        """All keys starting with prefix, sorted."""
        ...

    def ping(self) -> bool:
        """True if the backend is reachable."""
        ...


@runtime_checkable
class TransactionalStore(KeyValueStore, Protocol):
    """A store that can apply several writes as one unit."""

    def apply_batch(
        self,
        puts: Mapping[str, str],
        deletes: Iterable[str] = (),
    ) -> None:
        """Apply all puts and deletes atomically, or none of them."""
        ...
