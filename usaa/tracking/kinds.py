"""
Entity kinds tracked by the API.

Controllers and pilots share every piece of index logic. What differs
(key namespaces, URL segment, accepted attributes) lives in an EntityKind
so the index is written once.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from usaa.errors import ValidationError


@dataclass(frozen=True)
class AttributeSpec:
    """
    One kind-specific attribute carried on the record.

    Fields:
        name: JSON field name in request bodies and stored records
        required: setOnline rejects the request when missing
        pattern: Regex the (normalized) value must fully match
        max_length: Upper bound on the string length
        uppercase: Normalize to uppercase before matching
    """
    name: str
    required: bool = False
    pattern: Optional[str] = None
    max_length: int = 64
    uppercase: bool = False

    def clean(self, value: Any) -> str:
        """Coerce and validate a raw value."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ValidationError(f'Invalid {self.name}: must be a string')

        value = value.strip()
        if self.uppercase:
            value = value.upper()

        if not value:
            raise ValidationError(f'Invalid {self.name}: must not be empty')
        if len(value) > self.max_length:
            raise ValidationError(
                f'Invalid {self.name}: at most {self.max_length} characters'
            )
        if self.pattern and not re.fullmatch(self.pattern, value):
            raise ValidationError(f'Invalid {self.name} format')
        return value


@dataclass(frozen=True)
class EntityKind:
    """
    Per-kind configuration for an EntityIndex.

    Fields:
        name: Singular kind name ('controller', 'pilot')
        plural: URL segment ('controllers', 'pilots')
        key_prefix: Namespace for primary records
        callsign_prefix: Namespace for callsign index entries
        attributes: Kind-specific attributes accepted on setOnline
    """
    name: str
    plural: str
    key_prefix: str
    callsign_prefix: str
    attributes: Tuple[AttributeSpec, ...] = ()

    @property
    def label(self) -> str:
        """Capitalized name for user-facing messages."""
        return self.name.capitalize()

    def record_key(self, cid: str) -> str:
        return f'{self.key_prefix}{cid}'

    def callsign_key(self, callsign: str) -> str:
        return f'{self.callsign_prefix}{callsign}'

    def validate_attributes(self, raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        """
        Validate kind-specific attributes from a request.

        Unknown names are dropped. Missing required attributes and
        malformed values raise ValidationError.
        """
        raw = raw or {}
        cleaned = {}

        missing = [
            spec.name for spec in self.attributes
            if spec.required and raw.get(spec.name) in (None, '')
        ]
        if missing:
            raise ValidationError(f'Missing required fields: {", ".join(missing)}')

        for spec in self.attributes:
            value = raw.get(spec.name)
            if value is None:
                continue
            cleaned[spec.name] = spec.clean(value)

        return cleaned


CONTROLLER = EntityKind(
    name='controller',
    plural='controllers',
    key_prefix='controller:',
    # Legacy unscoped layout; pilots get their own namespace below
    callsign_prefix='callsign:',
    attributes=(
        AttributeSpec('frequency', pattern=r'1[1-3]\d\.\d{1,3}', max_length=7),
        AttributeSpec('facility', max_length=32),
        AttributeSpec('rating', pattern=r'[A-Z0-9]{1,4}', max_length=4, uppercase=True),
    ),
)

PILOT = EntityKind(
    name='pilot',
    plural='pilots',
    key_prefix='pilot:',
    callsign_prefix='callsign:pilot:',
    attributes=(
        AttributeSpec('aircraft', required=True, pattern=r'[A-Z0-9/-]{2,16}',
                      max_length=16, uppercase=True),
        AttributeSpec('departure', pattern=r'[A-Z0-9]{3,4}', max_length=4, uppercase=True),
        AttributeSpec('arrival', pattern=r'[A-Z0-9]{3,4}', max_length=4, uppercase=True),
        AttributeSpec('route', max_length=1024),
        AttributeSpec('cruiseAltitude', pattern=r'(FL)?\d{2,5}', max_length=7, uppercase=True),
        AttributeSpec('flightRules', pattern=r'IFR|VFR', max_length=3, uppercase=True),
    ),
)

KINDS: Tuple[EntityKind, ...] = (CONTROLLER, PILOT)
