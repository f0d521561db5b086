"""
Database models for the USAA API.

A single key-value table backs both entity kinds. Keys are namespaced
strings so prefix scans stay cheap on the primary key index.
"""

from usaa.models.base import Base, engine, SessionLocal, init_db, get_session
from usaa.models.kv_entry import KVEntry

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'init_db',
    'get_session',
    'KVEntry',
]
