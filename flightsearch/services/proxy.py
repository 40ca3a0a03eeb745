"""
AviationStack proxy service.

Forwards a logical endpoint request upstream with the server-held
credential, serves cached payloads while fresh, and turns every upstream
failure into a JSON error body with a matching HTTP status.

Cache policy:
- Forced refresh evicts the entry and always calls upstream
- Otherwise a fresh cached payload is returned as-is
- Only successful payloads are stored, with the configured TTL

Identical concurrent requests may both miss the cache and both call
upstream; the last completed write wins.
"""

import logging
from typing import Any, Mapping, Optional

import requests

from flightsearch.cache import CacheStore, MemoryCacheStore, make_cache_key
from flightsearch.config import AppConfig
from flightsearch.models import (
    Endpoint,
    JSONDocument,
    ProxyRequest,
    ProxyResult,
    redact,
)
from flightsearch.services.errors import (
    MalformedResponseError,
    ProxyError,
    TransportError,
    UpstreamDomainError,
    UpstreamHTTPError,
)
from flightsearch.upstream import AviationStackClient

logger = logging.getLogger(__name__)

# Max characters of a raw upstream body written to debug logs
LOG_BODY_LIMIT = 1000


HTTPS_RESTRICTED_MESSAGE = (
    'The free tier of Aviationstack does not support HTTPS. Please use HTTP instead.'
)
FREE_TIER_NOTE = 'Free tier of Aviationstack only supports HTTP, not HTTPS'


def empty_result() -> JSONDocument:
    return {'pagination': {'total': 0, 'count': 0}, 'data': []}


def _truncate(text: str, limit: int = LOG_BODY_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + '...(truncated)'


class AviationProxyService:
    """Caching proxy in front of the AviationStack API."""

    def __init__(
        self,
        config: AppConfig,
        cache_store: Optional[CacheStore] = None,
        client: Optional[AviationStackClient] = None,
    ):
        self.config = config
        self.debug = config.debug
        self.ttl_seconds = config.cache.ttl_seconds

        self.cache = cache_store or MemoryCacheStore(max_entries=config.cache.max_entries)
        self.client = client or AviationStackClient.from_config(config.aviationstack)

        if self.debug:
            logger.info(
                f'Proxy initialized: base_url={self.client.base_url} '
                f'key={self.client.masked_key} ttl={self.ttl_seconds}s'
            )

    def fetch(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any],
        force_refresh: bool = False,
    ) -> ProxyResult:
        """
        Proxy one request to the upstream API.

        Args:
            endpoint: Upstream resource to query
            params: Caller's query parameters (credential and debug flag
                    are dropped)
            force_refresh: Evict any cached entry and call upstream

        Returns:
            ProxyResult with the payload and the HTTP status to answer with.
        """
        return self.handle(ProxyRequest.build(endpoint, params, force_refresh))

    def handle(self, request: ProxyRequest) -> ProxyResult:
        endpoint = request.endpoint.value
        cache_key = make_cache_key(endpoint, request.params)

        logger.debug(
            f'Proxy request endpoint={endpoint} params={redact(request.params)} '
            f'cache_key={cache_key} force_refresh={request.force_refresh}'
        )

        if request.force_refresh:
            self.cache.forget(cache_key)
        else:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f'Cache hit for {cache_key}')
                return ProxyResult(payload=cached)

        try:
            payload = self._fetch_upstream(request)
        except ProxyError as e:
            details = _truncate(e.details or '')
            logger.error(
                f'AviationStack {endpoint} request failed [{type(e).__name__} '
                f'{e.status_code}]: {e.message} ({details}) params={redact(request.params)}'
            )
            return ProxyResult(payload=e.to_payload(debug=self.debug), status_code=e.status_code)

        self.cache.set(cache_key, payload, self.ttl_seconds)
        return ProxyResult(payload=payload)

    def _call(self, endpoint: str, params: Mapping[str, str]) -> requests.Response:
        """Issue the upstream call, mapping transport exceptions."""
        try:
            return self.client.get(endpoint, params)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransportError(details=str(e)) from e
        except requests.exceptions.RequestException as e:
            raise ProxyError(details=str(e)) from e

    def _fetch_upstream(self, request: ProxyRequest) -> JSONDocument:
        """
        Call upstream and interpret the response.

        Raises:
            ProxyError subclass describing the failure
        """
        endpoint = request.endpoint.value
        response = self._call(endpoint, request.params)

        if self.debug:
            logger.debug(
                f'AviationStack {endpoint} status={response.status_code} '
                f'body={_truncate(response.text)}'
            )

        if not 200 <= response.status_code < 300:
            raise UpstreamHTTPError(
                status_code=response.status_code,
                reason=response.reason or 'Unknown error',
                details=response.text,
            )

        data = self._parse_json(response)

        if data.get('error') is not None:
            raise UpstreamDomainError.from_body(data['error'])

        if 'data' not in data:
            logger.warning(
                f'AviationStack {endpoint} unexpected response structure: keys={list(data)}'
            )
            if not data:
                return empty_result()

        return data

    def _parse_json(self, response: requests.Response) -> JSONDocument:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                details=f'Response was not valid JSON: {response.text[:100]}'
            ) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(
                details=f'Response was not a JSON object: {response.text[:100]}'
            )
        return data

    def test_connection(self) -> ProxyResult:
        """
        Diagnostic upstream call, bypassing the cache.

        Requests a single flight record and reports protocol and status so
        configuration problems (bad key, HTTPS on the free tier) are easy
        to spot.
        """
        logger.info(
            f'AviationStack connection test: base_url={self.client.base_url} '
            f'key={self.client.masked_key}'
        )

        try:
            response = self._call(Endpoint.FLIGHTS.value, {'limit': '1'})
            data = self._parse_json(response)
        except ProxyError as e:
            logger.error(f'AviationStack connection test failed: {e.message} ({e.details})')
            payload = e.to_payload(debug=self.debug)
            payload['success'] = False
            return ProxyResult(payload=payload, status_code=e.status_code)

        logger.info(f'AviationStack connection test status={response.status_code}')

        if data.get('error') is not None:
            error = UpstreamDomainError.from_body(data['error'])
            body = {
                'success': False,
                'error': {
                    'message': error.info,
                    'code': error.code,
                    'type': error.error_type,
                },
            }
            if str(error.code) == '105':
                body['error']['message'] = HTTPS_RESTRICTED_MESSAGE
                body['error']['details'] = error.info
                body['current_url'] = self.client.base_url
            return ProxyResult(payload=body, status_code=400)

        return ProxyResult(payload={
            'success': 200 <= response.status_code < 300,
            'status': response.status_code,
            'protocol': self.config.aviationstack.protocol,
            'api_note': FREE_TIER_NOTE,
            'response': data,
            'message': 'Connection test completed. Check logs for details.',
        })

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        return {
            'cache': self.cache.stats,
            'cache_ttl_seconds': self.ttl_seconds,
            'upstream_requests': self.client.request_count,
            'api_configured': bool(self.client.api_key),
        }
