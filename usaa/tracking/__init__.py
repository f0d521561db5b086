"""
Controller and pilot presence tracking.

EntityIndex is the only component that writes records or callsign index
entries; everything else goes through it.
"""

from usaa.tracking.entity_index import EntityIndex, format_timestamp, utc_now
from usaa.tracking.kinds import AttributeSpec, EntityKind, CONTROLLER, PILOT, KINDS
from usaa.tracking.record import EntityRecord, EntityStatus
from usaa.tracking.validation import normalize_callsign, validate_cid

__all__ = [
    'EntityIndex',
    'format_timestamp',
    'utc_now',
    'AttributeSpec',
    'EntityKind',
    'CONTROLLER',
    'PILOT',
    'KINDS',
    'EntityRecord',
    'EntityStatus',
    'normalize_callsign',
    'validate_cid',
]
