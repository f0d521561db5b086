"""
EntityRecord - the stored state of one tracked controller or pilot.

Records are stored as JSON under `<kind>:<cid>`. Core fields use the
camelCase names the API has always returned; kind-specific attributes
sit alongside them at the top level and are never interpreted here.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class EntityStatus(str, Enum):
    """Network presence of a tracked entity."""
    ONLINE = 'online'
    OFFLINE = 'offline'


CORE_FIELDS = (
    'cid', 'callsign', 'status', 'firstSeen',
    'onlineTime', 'offlineTime', 'lastUpdate',
)


@dataclass
class EntityRecord:
    """
    Primary record for a CID.

    Fields:
        cid: Canonical numeric identifier as a string
        callsign: Normalized (uppercase) callsign, None if never assigned
        status: online or offline
        first_seen: Set on the first online transition, never changed
        online_time: Most recent transition into online
        offline_time: Most recent transition into offline (None if never)
        last_update: Most recent mutation of any kind
        attributes: Kind-specific fields (frequency, aircraft, route...)
    """
    cid: str
    callsign: Optional[str]
    status: EntityStatus
    first_seen: Optional[str] = None
    online_time: Optional[str] = None
    offline_time: Optional[str] = None
    last_update: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_online(self) -> bool:
        return self.status is EntityStatus.ONLINE

    @property
    def online_since(self) -> Optional[datetime]:
        """Parsed onlineTime, or None if missing/unparseable."""
        if not self.online_time:
            return None
        value = self.online_time
        # fromisoformat only learned the Z suffix in 3.11
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        # Stored times are UTC; tolerate values written without an offset
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> dict:
        """Convert to the JSON shape used in storage and API responses."""
        data = dict(self.attributes)
        data.update({
            'cid': self.cid,
            'callsign': self.callsign,
            'status': self.status.value,
            'firstSeen': self.first_seen,
            'onlineTime': self.online_time,
            'lastUpdate': self.last_update,
        })
        if self.offline_time:
            data['offlineTime'] = self.offline_time
        return data

    @classmethod
    def from_dict(cls, data: Any) -> 'EntityRecord':
        """
        Build a record from stored JSON.

        Raises ValueError if the payload is not a record.
        """
        if not isinstance(data, dict):
            raise ValueError('record is not an object')

        cid = data.get('cid')
        if not isinstance(cid, str) or not cid:
            raise ValueError('record has no cid')

        # Raises ValueError for unknown status strings
        status = EntityStatus(data.get('status'))

        return cls(
            cid=cid,
            callsign=data.get('callsign') or None,
            status=status,
            first_seen=data.get('firstSeen'),
            online_time=data.get('onlineTime'),
            offline_time=data.get('offlineTime'),
            last_update=data.get('lastUpdate'),
            attributes={k: v for k, v in data.items() if k not in CORE_FIELDS},
        )
