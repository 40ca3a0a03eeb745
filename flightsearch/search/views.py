"""
Search page.

- GET / - Search form; with ``?q=...`` runs the search and renders results
"""

import logging

from flask import Blueprint, render_template, request

from flightsearch.api.aviation import get_proxy_service
from flightsearch.search.query import run_search

logger = logging.getLogger(__name__)

search_bp = Blueprint('search', __name__)


@search_bp.route('/', methods=['GET'])
def index():
    """Serve the search page."""
    service = get_proxy_service()
    query = request.args.get('q', '')

    outcome = run_search(service, query, debug=service.debug)

    return render_template('search.html', outcome=outcome)
