"""
Key-value storage backends.

Both entity kinds share one store; keys are namespaced by kind.
"""

from usaa.store.protocol import KeyValueStore, TransactionalStore
from usaa.store.memory import MemoryStore
from usaa.store.sql import SqlStore

__all__ = ['KeyValueStore', 'TransactionalStore', 'MemoryStore', 'SqlStore']
