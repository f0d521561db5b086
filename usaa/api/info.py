"""
Service information and status endpoints.

Provides endpoints for:
- GET /       - API description and endpoint map
- GET /health - Simple liveness check
- GET /status - Store connectivity and online counts
"""

import logging
import time

from flask import Blueprint, current_app

from usaa import __version__
from usaa.api.entities import EXTENSION_KEY
from usaa.api.responses import success_response
from usaa.errors import StorageError
from usaa.tracking import KINDS

logger = logging.getLogger(__name__)

info_bp = Blueprint('info', __name__)


def _endpoint_map() -> dict:
    endpoints = {'GET /': 'API information'}
    for kind in KINDS:
        p = kind.plural
        endpoints.update({
            f'GET /{p}': f'List all online {p}',
            f'GET /{p}/:cid': f'Get specific {kind.name} by CID',
            f'GET /{p}/callsign/:callsign': f'Get {kind.name} by callsign',
            f'POST /{p}/online': f'Set {kind.name} as online',
            f'POST /{p}/offline': f'Set {kind.name} as offline',
            f'DELETE /{p}/:cid': f'Remove {kind.name} from tracking',
        })
    endpoints['GET /callsign/:callsign'] = 'Get controller by callsign'
    return endpoints


@info_bp.route('/', methods=['GET'])
def api_info():
    return success_response({
        'name': 'United States Aviation Administrator (USAA) API',
        'version': __version__,
        'description': 'API for tracking aviation controllers, pilots and network status',
        'endpoints': _endpoint_map(),
    })


@info_bp.route('/health', methods=['GET'])
def health():
    """Simple health check endpoint."""
    return success_response(status='ok')


@info_bp.route('/status', methods=['GET'])
def status():
    """
    Get store health and tracking counts.

    Counting online entities is a full scan per kind, so this endpoint is
    meant for operators rather than clients.
    """
    start_time = time.perf_counter()

    indexes = current_app.extensions[EXTENSION_KEY]
    store = current_app.extensions['usaa_store']
    store_ok = store.ping()

    online = {}
    if store_ok:
        try:
            online = {name: index.count_online() for name, index in indexes.items()}
        except StorageError as e:
            store_ok = False
            logger.error(f'Status scan failed: {e.message} ({e.details})')

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return success_response({
        'status': 'healthy' if store_ok else 'degraded',
        'store': {
            'connected': store_ok,
            'backend': type(store).__name__,
        },
        'online': online,
        'query_time_ms': round(query_time_ms, 2),
    })
