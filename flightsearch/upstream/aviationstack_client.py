"""
AviationStack API client.

Handles communication with the AviationStack REST API:
- GET requests to ``{base_url}/{endpoint}``
- Credential injection via the ``access_key`` query parameter
- Bounded request timeout

Responses are returned untouched; interpreting status codes and error
bodies is the proxy service's job. No retries are attempted, transport
exceptions from ``requests`` propagate to the caller.
"""

import logging
import time
from typing import Any, Mapping, Optional

import requests

from flightsearch.config import AviationStackConfig
from flightsearch.models import CREDENTIAL_PARAM, redact

logger = logging.getLogger(__name__)


class AviationStackClient:
    """Client for the AviationStack REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = 'http://api.aviationstack.com/v1',
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

        self.request_count = 0

        if not self.api_key:
            logger.warning('AviationStack API key not configured - upstream will reject requests')

    @classmethod
    def from_config(cls, config: AviationStackConfig) -> 'AviationStackClient':
        """Create client from application configuration."""
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )

    @property
    def masked_key(self) -> str:
        """First characters of the key, for diagnostics only."""
        if not self.api_key:
            return '(not set)'
        return self.api_key[:5] + '***'

    def url_for(self, endpoint: str) -> str:
        return f'{self.base_url}/{endpoint}'

    def get(self, endpoint: str, params: Mapping[str, Any]) -> requests.Response:
        """
        Issue a GET request for an endpoint.

        Args:
            endpoint: Upstream path segment, e.g. ``flights``
            params: Query parameters; the credential is added here

        Returns:
            The raw ``requests.Response``, whatever its status.

        Raises:
            requests.RequestException on transport failures
        """
        query = dict(params)
        query[CREDENTIAL_PARAM] = self.api_key or ''

        url = self.url_for(endpoint)
        logger.debug(f'Fetching {url} params={redact(query)}')

        start_time = time.perf_counter()
        response = self.session.get(url, params=query, timeout=self.timeout)
        self.request_count += 1

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f'AviationStack {endpoint} responded {response.status_code} '
            f'in {elapsed_ms:.0f}ms ({len(response.content or b"")} bytes)'
        )

        return response
