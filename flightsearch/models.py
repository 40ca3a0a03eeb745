"""
Request, result and cache entry types shared by the proxy components.

Upstream documents are kept as plain dicts: the record shape varies by
endpoint and the proxy only looks at the top-level ``error`` and ``data``
keys.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

# Query parameter carrying the credential upstream
CREDENTIAL_PARAM = 'access_key'

# Query parameter requesting a forced refresh
DEBUG_PARAM = 'debug'

JSONDocument = Dict[str, Any]


class Endpoint(str, Enum):
    """Upstream resources exposed through the proxy."""
    FLIGHTS = 'flights'
    ROUTES = 'routes'
    AIRPORTS = 'airports'
    AIRLINES = 'airlines'
    AIRPLANES = 'airplanes'
    AIRCRAFT_TYPES = 'aircraft_types'
    TAXES = 'taxes'
    CITIES = 'cities'
    COUNTRIES = 'countries'
    FLIGHT_SCHEDULES = 'flight_schedules'
    FUTURE_SCHEDULES = 'future_schedules'

    @property
    def path(self) -> str:
        """Public URL segment, e.g. ``aircraft-types``."""
        return self.value.replace('_', '-')


def strip_reserved(params: Mapping[str, Any]) -> Dict[str, str]:
    """Drop the credential and debug flag and stringify values."""
    return {
        str(name): '' if value is None else str(value)
        for name, value in params.items()
        if name not in (CREDENTIAL_PARAM, DEBUG_PARAM)
    }


def redact(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of params safe to log."""
    return {
        name: ('***' if name == CREDENTIAL_PARAM else value)
        for name, value in params.items()
    }


@dataclass(frozen=True)
class ProxyRequest:
    """One call through the proxy."""
    endpoint: Endpoint
    params: Mapping[str, str]
    force_refresh: bool = False

    @classmethod
    def build(
        cls,
        endpoint: Endpoint,
        params: Mapping[str, Any],
        force_refresh: bool = False,
    ) -> 'ProxyRequest':
        return cls(
            endpoint=Endpoint(endpoint),
            params=MappingProxyType(strip_reserved(params)),
            force_refresh=force_refresh,
        )


@dataclass
class ProxyResult:
    """JSON payload plus the HTTP status to answer with."""
    payload: JSONDocument
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.status_code == 200


@dataclass
class CacheEntry:
    """Cached upstream payload with expiry metadata."""
    key: str
    payload: JSONDocument
    ttl_seconds: int
    stored_at: float = field(default_factory=time.time)

    def is_expired(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return now - self.stored_at >= self.ttl_seconds
