"""Pytest fixtures for flight search tests."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from flightsearch.app import create_app
from flightsearch.cache import MemoryCacheStore
from flightsearch.config import AppConfig, AviationStackConfig, CacheConfig
from flightsearch.services import AviationProxyService
from flightsearch.upstream import AviationStackClient

API_KEY = 'test-key-12345'
BASE_URL = 'http://api.aviationstack.com/v1'


def build_response(body=None, status=200, reason='OK', text=None):
    """Real requests.Response carrying a canned upstream body."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if text is None:
        text = json.dumps(body if body is not None else {})
    response._content = text.encode('utf-8')
    response.encoding = 'utf-8'
    response.url = f'{BASE_URL}/flights'
    return response


@pytest.fixture
def upstream_response():
    """Factory for upstream responses."""
    return build_response


@pytest.fixture
def flight_record():
    """Sample AviationStack flight record."""
    return {
        'flight_date': '2024-05-01',
        'flight_status': 'active',
        'departure': {
            'airport': 'Heathrow',
            'iata': 'LHR',
            'scheduled': '2024-05-01T10:00:00+00:00',
            'actual': '2024-05-01T10:25:00+00:00',
            'delay': 25,
        },
        'arrival': {
            'airport': 'John F Kennedy International',
            'iata': 'JFK',
            'scheduled': '2024-05-01T13:05:00+00:00',
            'actual': None,
            'delay': None,
        },
        'airline': {'name': 'British Airways', 'iata': 'BA'},
        'flight': {'number': '117', 'iata': 'BA117', 'icao': 'BAW117'},
    }


@pytest.fixture
def session(upstream_response):
    """Mocked requests session; defaults to an empty successful response."""
    mock = MagicMock()
    mock.headers = {}
    mock.get.return_value = upstream_response({'pagination': {'total': 0, 'count': 0}, 'data': []})
    return mock


def make_config(debug=False, ttl_minutes=15):
    return AppConfig(
        aviationstack=AviationStackConfig(api_key=API_KEY, base_url=BASE_URL),
        cache=CacheConfig(ttl_minutes=ttl_minutes),
        debug=debug,
    )


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def debug_config():
    return make_config(debug=True)


@pytest.fixture
def upstream_client(session):
    return AviationStackClient(api_key=API_KEY, base_url=BASE_URL, timeout=15, session=session)


@pytest.fixture
def cache_store():
    return MemoryCacheStore(max_entries=50)


@pytest.fixture
def service(config, cache_store, upstream_client):
    return AviationProxyService(config, cache_store=cache_store, client=upstream_client)


@pytest.fixture
def debug_service(debug_config, cache_store, upstream_client):
    return AviationProxyService(debug_config, cache_store=cache_store, client=upstream_client)


@pytest.fixture
def app(config, cache_store, upstream_client):
    app = create_app(config=config, cache_store=cache_store, client=upstream_client)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def debug_app(debug_config, cache_store, upstream_client):
    app = create_app(config=debug_config, cache_store=cache_store, client=upstream_client)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def http(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def debug_http(debug_app):
    return debug_app.test_client()
