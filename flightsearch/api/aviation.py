"""
AviationStack proxy API endpoints.

Provides endpoints for:
- GET /api/aviation/<resource> - Proxied upstream resource (flights,
  routes, airports, airlines, airplanes, aircraft-types, taxes, cities,
  countries, flight-schedules, future-schedules)
- GET /api/aviation/test - Upstream connectivity check
- GET /api/aviation/status - Cache and service statistics

All query-string parameters are forwarded upstream. Adding ``debug`` to the
query forces a cache refresh when the server runs in debug mode.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Mapping

from flask import Blueprint, current_app, jsonify, request

from flightsearch.models import DEBUG_PARAM, Endpoint, redact

logger = logging.getLogger(__name__)

aviation_bp = Blueprint('aviation', __name__, url_prefix='/api/aviation')


def get_proxy_service():
    """Proxy service attached to the running app."""
    return current_app.config['PROXY_SERVICE']


def should_force_refresh(args: Mapping[str, str], debug: bool) -> bool:
    """The debug flag only takes effect when the server is in debug mode."""
    return debug and DEBUG_PARAM in args


def _make_proxy_view(endpoint: Endpoint):
    def proxy_view():
        service = get_proxy_service()
        params = request.args.to_dict()
        force_refresh = should_force_refresh(params, service.debug)

        if service.debug:
            logger.info(f'New request to {endpoint.value}: {redact(params)}')

        result = service.fetch(endpoint, params, force_refresh=force_refresh)
        return jsonify(result.payload), result.status_code

    proxy_view.__name__ = f'proxy_{endpoint.value}'
    proxy_view.__doc__ = f'Proxy GET {endpoint.path} to the upstream {endpoint.value} endpoint.'
    return proxy_view


for _endpoint in Endpoint:
    aviation_bp.add_url_rule(
        f'/{_endpoint.path}',
        endpoint=_endpoint.value,
        view_func=_make_proxy_view(_endpoint),
        methods=['GET'],
    )


@aviation_bp.route('/test', methods=['GET'])
def test_connection():
    """Check that the upstream API is reachable with the configured key."""
    result = get_proxy_service().test_connection()
    return jsonify(result.payload), result.status_code


@aviation_bp.route('/status', methods=['GET'])
def get_status():
    """
    Get proxy status information.

    Returns:
    - Cache statistics
    - Upstream request count
    - Configuration summary (never the credential itself)
    """
    start_time = time.perf_counter()

    service = get_proxy_service()
    stats = service.stats

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': 'ok' if stats['api_configured'] else 'degraded',
        'proxy': stats,
        'config': {
            'protocol': service.config.aviationstack.protocol,
            'timeout_seconds': service.config.aviationstack.timeout_seconds,
            'cache_backend': service.config.cache.backend,
            'debug': service.debug,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })
