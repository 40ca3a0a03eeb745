"""
External integration services.

Proxies third-party API calls with caching and translates upstream
failures into JSON error bodies.
"""

from flightsearch.services.errors import (
    ProxyError,
    TransportError,
    UpstreamHTTPError,
    MalformedResponseError,
    UpstreamDomainError,
)
from flightsearch.services.proxy import AviationProxyService

__all__ = [
    'AviationProxyService',
    'ProxyError',
    'TransportError',
    'UpstreamHTTPError',
    'MalformedResponseError',
    'UpstreamDomainError',
]
