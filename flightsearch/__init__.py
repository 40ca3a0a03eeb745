"""
Flight Search Package.

Caching proxy for the AviationStack flight-data API, built with Flask,
requests and Redis.

Modules:
    api/         REST endpoints proxying AviationStack resources
    services/    Proxy service with cache policy and error translation
    upstream/    AviationStack HTTP client
    search/      Search page: query inference and result display
    cache.py     Response cache stores (in-memory and Redis)
    config.py    Centralized configuration from environment variables
    models.py    Request, result and cache entry types
"""

__version__ = '1.0.0'
