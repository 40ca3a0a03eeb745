"""
Flight search page.

Turns free-text queries into proxy requests and upstream records into
display records.
"""

from flightsearch.search.display import DisplayRecord, to_display_record
from flightsearch.search.query import SearchOutcome, infer_params, run_search
from flightsearch.search.views import search_bp

__all__ = [
    'DisplayRecord',
    'SearchOutcome',
    'infer_params',
    'run_search',
    'search_bp',
    'to_display_record',
]
