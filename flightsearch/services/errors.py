"""
Proxy error taxonomy.

Each error knows the HTTP status it maps to and renders the JSON error
body returned to the browser. ``details`` carries raw upstream information
and is only filled in when the app runs in debug mode.
"""

from typing import Any, Dict, Optional

# User-facing messages for AviationStack error codes
ERROR_MESSAGES = {
    101: 'The API access key is invalid. Please check your configuration.',
    102: 'The user account is inactive. Please check your Aviationstack account status.',
    103: 'This function is restricted with your current subscription plan.',
    104: 'The monthly API request limit has been reached. Please upgrade your plan.',
    105: 'HTTPS access requires a paid subscription plan.',
    301: 'Some required parameters are missing or invalid. Please check your search query.',
    302: 'The date format is invalid. Please use YYYY-MM-DD format.',
    303: 'No results were found matching your search criteria.',
}


def translate_error_code(code: Any, fallback: str) -> str:
    """Look up the user-facing message for an upstream error code."""
    try:
        return ERROR_MESSAGES.get(int(code), fallback)
    except (TypeError, ValueError):
        return fallback


class ProxyError(Exception):
    """Base class for errors terminating a proxied request."""

    status_code = 500
    default_message = 'An error occurred while fetching flight data.'

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def error_fields(self) -> Dict[str, Any]:
        return {'message': self.message}

    def to_payload(self, debug: bool = False) -> Dict[str, Any]:
        body = self.error_fields()
        body['details'] = self.details if debug else None
        return {'error': body}


class TransportError(ProxyError):
    """Upstream unreachable: connection refused, DNS failure or timeout."""

    status_code = 503
    default_message = (
        'Could not connect to the Aviationstack API. '
        'Please check your internet connection and try again.'
    )


class UpstreamHTTPError(ProxyError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str, details: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f'The Aviationstack API request failed: {reason}', details)

    def error_fields(self) -> Dict[str, Any]:
        return {'message': self.message, 'status': self.status_code}


class MalformedResponseError(ProxyError):
    """Upstream body is not a JSON object."""

    status_code = 500
    default_message = 'Invalid response format from Aviationstack API'


class UpstreamDomainError(ProxyError):
    """Upstream body carries an ``error`` object."""

    status_code = 400

    def __init__(self, code: Any = 0, error_type: str = 'unknown', info: str = 'Unknown error'):
        self.code = code
        self.error_type = error_type
        self.info = info
        super().__init__(translate_error_code(code, info), details=info)

    @classmethod
    def from_body(cls, error: Any) -> 'UpstreamDomainError':
        if not isinstance(error, dict):
            return cls(info=str(error))
        return cls(
            code=error.get('code', 0),
            error_type=error.get('type') or 'unknown',
            info=error.get('info') or error.get('message') or 'Unknown error',
        )

    def error_fields(self) -> Dict[str, Any]:
        return {'message': self.message, 'code': self.code, 'type': self.error_type}
