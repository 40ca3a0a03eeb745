"""
Upstream API clients.

Handles raw HTTP communication with the AviationStack REST API.
"""

from flightsearch.upstream.aviationstack_client import AviationStackClient

__all__ = ['AviationStackClient']
