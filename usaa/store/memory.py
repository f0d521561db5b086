"""
In-memory key-value store.

Thread-safe dict behind an RLock. It deliberately does not offer
`apply_batch`: like the edge KV the service was first deployed on, each
call is independent, so the entity index falls back to parallel
best-effort writes against it.
"""

import logging
import threading
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class MemoryStore:
    """Process-local store for tests and single-instance deployments."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def list_keys(self, prefix: str) -> List[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop every key."""
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def snapshot(self) -> Dict[str, str]:
        """Copy of the current contents."""
        with self._lock:
            return dict(self._data)
