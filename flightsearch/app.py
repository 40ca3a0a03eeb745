"""
Flight Search Flask Application.

Main entry point for the web application. Initializes:
- Configuration (once, from the environment)
- Response cache store
- AviationStack proxy service
- API routes and the search page

Usage:
    python -m flightsearch.app

Or with gunicorn:
    gunicorn 'flightsearch.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightsearch.api import aviation_bp
from flightsearch.cache import CacheStore, build_cache_store
from flightsearch.config import AppConfig, load_config
from flightsearch.search import search_bp
from flightsearch.services import AviationProxyService
from flightsearch.upstream import AviationStackClient

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def configure_logging(config: AppConfig) -> None:
    """
    Configure root logging.

    In debug mode upstream traffic can additionally be written to the
    file named by ``AVIATIONSTACK_LOG_FILE``.
    """
    logging.basicConfig(
        level=config.logging.resolve_level(config.debug),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    log_file = config.logging.debug_log_file
    if not (config.debug and log_file):
        return

    log_path = os.path.abspath(log_file)
    package_logger = logging.getLogger('flightsearch')
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == log_path
           for h in package_logger.handlers):
        return

    os.makedirs(os.path.dirname(log_path), exist_ok=True)
    handler = logging.FileHandler(log_path)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
    package_logger.addHandler(handler)
    # Upstream traffic is logged at DEBUG
    package_logger.setLevel(logging.DEBUG)
    logger.info(f'Writing upstream debug log to {log_path}')


def create_app(
    config: Optional[AppConfig] = None,
    cache_store: Optional[CacheStore] = None,
    client: Optional[AviationStackClient] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        config: Application configuration. Loaded from the environment
                if not given.
        cache_store: Response cache. Built from configuration if not given.
        client: Upstream API client. Built from configuration if not given.
                Tests pass a client with a mocked session.

    Returns:
        Configured Flask application instance.
    """
    config = config or load_config()
    configure_logging(config)

    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key
    app.config['APP_CONFIG'] = config

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Proxy service
    if cache_store is None:
        cache_store = build_cache_store(config.cache)
    app.config['PROXY_SERVICE'] = AviationProxyService(
        config,
        cache_store=cache_store,
        client=client,
    )

    # Register blueprints
    app.register_blueprint(aviation_bp)
    app.register_blueprint(search_bp)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': {'message': 'Not found'}}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'error': {'message': 'Method not allowed'}}, 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': {'message': 'Internal server error'}}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()
    config = app.config['APP_CONFIG']

    # Get port from environment or default
    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting flight search on http://localhost:{port}')
    logger.info(f'Proxy API: http://localhost:{port}/api/aviation/flights')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
    )


if __name__ == '__main__':
    run_development_server()
