"""
REST API blueprints.

Exports:
    aviation_bp: AviationStack proxy endpoints under /api/aviation
"""

from flightsearch.api.aviation import aviation_bp

__all__ = ['aviation_bp']
