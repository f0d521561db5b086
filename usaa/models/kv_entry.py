"""
KVEntry model - one row per key in the tracking key-value namespace.

Entity records (`controller:<cid>`, `pilot:<cid>`) and callsign index
entries (`callsign:...`) share this table. Values are opaque strings;
the tracking layer owns their encoding.
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from usaa.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KVEntry(Base):
    """A single key-value pair."""

    __tablename__ = 'kv_entries'

    # Primary key doubles as the prefix-scan index
    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment='Namespaced key, e.g. controller:1234567'
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment='Serialized record or plain CID'
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        comment='Last write time'
    )

    def __repr__(self) -> str:
        return f'<KVEntry {self.key}>'
