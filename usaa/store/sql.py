"""
SQL-backed key-value store.

Stores every key in the `kv_entries` table. Each call runs in its own
session; `apply_batch` commits a group of writes in a single transaction,
so record and callsign index updates land together on this backend.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Generator, Iterable, List, Mapping, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from usaa.errors import StorageError
from usaa.models import KVEntry, get_session

logger = logging.getLogger(__name__)


class SqlStore:
    """Key-value store on top of a SQLAlchemy session factory."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        # None means the application-wide SessionLocal
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        try:
            with get_session(self._session_factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f'Store {operation} failed: {e}')
            raise StorageError(f'Storage {operation} failed', details=str(e)) from e

    def get(self, key: str) -> Optional[str]:
        with self._session('read') as session:
            entry = session.get(KVEntry, key)
            return entry.value if entry else None

    def put(self, key: str, value: str) -> None:
        with self._session('write') as session:
            session.merge(KVEntry(key=key, value=value))

    def delete(self, key: str) -> None:
        with self._session('delete') as session:
            session.execute(delete(KVEntry).where(KVEntry.key == key))

    def list_keys(self, prefix: str) -> List[str]:
        with self._session('scan') as session:
            rows = session.execute(
                select(KVEntry.key)
                .where(KVEntry.key.startswith(prefix, autoescape=True))
                .order_by(KVEntry.key)
            )
            return [row[0] for row in rows]

    def apply_batch(
        self,
        puts: Mapping[str, str],
        deletes: Iterable[str] = (),
    ) -> None:
        deletes = list(deletes)
        with self._session('batch write') as session:
            for key, value in puts.items():
                session.merge(KVEntry(key=key, value=value))
            if deletes:
                session.execute(delete(KVEntry).where(KVEntry.key.in_(deletes)))

    def ping(self) -> bool:
        try:
            with get_session(self._session_factory) as session:
                session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            logger.error(f'Database health check failed: {e}')
            return False
