"""
USAA Flask Application.

Main entry point for the web application. Initializes:
- Key-value store (SQL table or in-memory)
- One EntityIndex per entity kind
- API routes
- CORS and JSON error handling

Usage:
    python -m usaa.app

Or with gunicorn:
    gunicorn 'usaa.app:create_app()'
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, request
from flask_cors import CORS

from usaa.config import config
from usaa.api import (
    EXTENSION_KEY,
    create_entity_blueprint,
    error_response,
    handle_tracking_error,
    info_bp,
    legacy_bp,
)
from usaa.errors import TrackingError
from usaa.models import init_db
from usaa.store import KeyValueStore, MemoryStore, SqlStore
from usaa.tracking import EntityIndex, KINDS

# Configure logging
logging.basicConfig(
    level=config.log_level or (logging.DEBUG if config.debug else logging.INFO),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)

CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
CORS_HEADERS = ['Content-Type', 'Authorization']


def create_store() -> KeyValueStore:
    """Build the store selected by STORE_BACKEND."""
    if config.store.is_memory:
        logger.info('Using in-memory store (state is lost on restart)')
        return MemoryStore()

    logger.info('Initializing database...')
    init_db()
    return SqlStore()


def create_app(
    store: Optional[KeyValueStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        store: Key-value backend to use. Built from configuration if None;
               tests pass a MemoryStore.
        clock: Time source for record timestamps (defaults to UTC now).

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key
    app.config['MAX_CONTENT_LENGTH'] = config.api.max_content_length

    # Permissive CORS on every route, including errors
    CORS(
        app,
        resources={r'/*': {'origins': '*'}},
        methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        send_wildcard=True,
    )

    if store is None:
        store = create_store()

    # One pool shared by every kind's index
    executor = ThreadPoolExecutor(
        max_workers=config.store.write_workers,
        thread_name_prefix='usaa-store',
    )
    app.extensions['usaa_store'] = store
    app.extensions[EXTENSION_KEY] = {
        kind.name: EntityIndex(store, kind, clock=clock, executor=executor)
        for kind in KINDS
    }

    # Register API blueprints
    app.register_blueprint(info_bp)
    app.register_blueprint(legacy_bp)
    for kind in KINDS:
        app.register_blueprint(create_entity_blueprint(kind))

    # -------------------------------------------------------------------------
    # Pre-flight
    # -------------------------------------------------------------------------

    @app.before_request
    def answer_preflight():
        """Every OPTIONS request succeeds with an empty body."""
        if request.method == 'OPTIONS':
            return '', 204
        return None

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    app.register_error_handler(TrackingError, handle_tracking_error)

    @app.errorhandler(404)
    def not_found(e):
        return error_response('Endpoint not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response('Method not allowed', 405)

    @app.errorhandler(413)
    def payload_too_large(e):
        return error_response('Request body too large', 413)

    @app.errorhandler(500)
    def server_error(e):
        original = getattr(e, 'original_exception', None) or e
        logger.error(f'Server error: {original}', exc_info=original)
        return error_response('Internal server error', 500)

    logger.info(f'Tracking {", ".join(k.plural for k in KINDS)} on {type(store).__name__}')
    return app


def run_development_server():
    """Run the development server."""
    app = create_app()
    port = config.api.port

    logger.info(f'Starting USAA API on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Reloader would spawn a second store/executor
    )


if __name__ == '__main__':
    run_development_server()
