"""
JSON envelope helpers shared by every endpoint.

Every response, success or failure, carries `success` and `timestamp`.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Type

from flask import jsonify

from usaa.errors import (
    ConflictError,
    IndexInconsistencyError,
    NotFoundError,
    StorageError,
    TrackingError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: Dict[Type[TrackingError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    StorageError: 500,
    IndexInconsistencyError: 500,
}


def current_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(data: Any = None, status_code: int = 200, **extra):
    """Build a success envelope. Extra keys (message, count) are merged in."""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    body.update(extra)
    body['timestamp'] = current_timestamp()
    return jsonify(body), status_code


def error_response(error: str, status: int, details: Any = None):
    body = {'success': False, 'error': error}
    if details is not None:
        body['details'] = details
    body['timestamp'] = current_timestamp()
    return jsonify(body), status


def status_for(exc: TrackingError) -> int:
    """HTTP status for a tracking error, walking the class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


def handle_tracking_error(exc: TrackingError):
    """Flask error handler for the tracking error hierarchy."""
    status = status_for(exc)
    if status >= 500:
        logger.error(f'{type(exc).__name__}: {exc.message} ({exc.details})')
        return error_response(exc.message, status, details=exc.details)
    return error_response(exc.message, status)
