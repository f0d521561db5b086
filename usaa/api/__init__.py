"""
API module for the USAA service.

Provides REST endpoints for:
- Controller and pilot presence (one blueprint per entity kind)
- Service information and status
"""

from usaa.api.entities import create_entity_blueprint, get_index, legacy_bp, EXTENSION_KEY
from usaa.api.info import info_bp
from usaa.api.responses import error_response, handle_tracking_error, success_response

__all__ = [
    'create_entity_blueprint',
    'get_index',
    'legacy_bp',
    'EXTENSION_KEY',
    'info_bp',
    'error_response',
    'handle_tracking_error',
    'success_response',
]
