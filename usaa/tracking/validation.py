"""Input validation for CIDs and callsigns.

Both helpers return the canonical form or raise ValidationError; nothing
downstream re-checks their output.
"""

import re
from typing import Any

from usaa.errors import ValidationError

CID_PATTERN = re.compile(r'[1-9]\d*')

# Separates key namespaces in the store
KEY_SEPARATOR = ':'

CALLSIGN_MIN_LENGTH = 2
CALLSIGN_MAX_LENGTH = 20
CID_MAX_LENGTH = 12


def validate_cid(value: Any) -> str:
    """Validate a network CID and return its canonical string form.

    Accepts JSON integers or digit strings. Zero, signs, whitespace and
    leading zeros are rejected so the same CID always maps to one key.

    Args:
        value: Raw CID from a path segment or request body

    Returns:
        Canonical decimal string, e.g. '1234567'
    """
    if isinstance(value, bool):
        raise ValidationError('Invalid CID format. CID must be numeric.')
    if isinstance(value, int):
        value = str(value)
    if (
        not isinstance(value, str)
        or len(value) > CID_MAX_LENGTH
        or not CID_PATTERN.fullmatch(value)
    ):
        raise ValidationError('Invalid CID format. CID must be numeric.')
    return value


def normalize_callsign(value: Any) -> str:
    """Validate a callsign and return it uppercased.

    Callsigns are case-insensitive: 'ual123', 'UAL123' and 'Ual123' all
    normalize to 'UAL123'. Any character is accepted except the key
    separator, so 'N1.A' and 'JFK_TWR' are both valid.
    """
    if not isinstance(value, str):
        raise ValidationError('Invalid callsign format')

    callsign = value.strip()
    if not (CALLSIGN_MIN_LENGTH <= len(callsign) <= CALLSIGN_MAX_LENGTH):
        raise ValidationError('Invalid callsign format')
    if KEY_SEPARATOR in callsign:
        raise ValidationError('Invalid callsign format')

    return callsign.upper()
