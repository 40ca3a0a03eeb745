"""
Search query handling for the search page.

A free-text query is read as one of:
- a route ``DEP-ARR`` -> dep_iata / arr_iata
- a bare number -> flight_number
- anything else -> flight_iata (carrier code + number)

Every interactive search asks for a forced refresh so users always see
live data; the flag only takes effect when the server runs in debug mode.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flightsearch.api.aviation import should_force_refresh
from flightsearch.models import DEBUG_PARAM, Endpoint
from flightsearch.search.display import DisplayRecord, to_display_record

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = 'No flights found matching your search.'
FAILED_MESSAGE = 'Failed to fetch flight data. Please try again.'


def infer_params(query: str) -> Dict[str, str]:
    """
    Derive upstream query parameters from free text.

    >>> infer_params('LHR-JFK')
    {'dep_iata': 'LHR', 'arr_iata': 'JFK'}
    >>> infer_params('123')
    {'flight_number': '123'}
    """
    text = (query or '').strip()
    if not text:
        return {}

    if '-' in text:
        dep, arr = (token.strip().upper() for token in text.split('-', 1))
        # Half-typed routes only send the side that is filled in
        params = {}
        if dep:
            params['dep_iata'] = dep
        if arr:
            params['arr_iata'] = arr
        return params

    if text.isdigit():
        return {'flight_number': text}

    return {'flight_iata': text.upper()}


@dataclass
class SearchOutcome:
    """
    What the search page shows for one query.

    An empty result set is reported through ``error`` just like a failed
    request; ``failed`` tells the two apart.
    """
    query: str
    params: Dict[str, str] = field(default_factory=dict)
    records: List[DisplayRecord] = field(default_factory=list)
    error: Optional[str] = None
    failed: bool = False
    status_code: int = 200

    @property
    def searched(self) -> bool:
        return bool(self.params)


def run_search(service, query: str, debug: bool = False) -> SearchOutcome:
    """
    Run a search through the proxy service.

    Args:
        service: AviationProxyService
        query: Free text from the search box
        debug: Whether the server runs in debug mode
    """
    params = infer_params(query)
    outcome = SearchOutcome(query=query or '', params=params)
    if not params:
        return outcome

    args = dict(params)
    args[DEBUG_PARAM] = '1'

    result = service.fetch(
        Endpoint.FLIGHTS,
        args,
        force_refresh=should_force_refresh(args, debug),
    )
    outcome.status_code = result.status_code

    if not result.ok:
        error = result.payload.get('error')
        message = error.get('message') if isinstance(error, dict) else None
        outcome.error = message or FAILED_MESSAGE
        outcome.failed = True
        return outcome

    records = result.payload.get('data')
    if not isinstance(records, list) or not records:
        logger.info(f'Search {params} returned no results')
        outcome.error = NO_RESULTS_MESSAGE
        return outcome

    outcome.records = [to_display_record(r) for r in records if isinstance(r, dict)]
    return outcome
