"""
Models package for the Vibe Walks backend.

Domain dataclasses used by route generation and walk tracking, plus the
SQLAlchemy model for saved walks.
"""

from .walk import (
    DEFAULT_CATEGORY,
    Vibe,
    Pace,
    PolylineSource,
    Coordinate,
    RawPOI,
    Enrichment,
    PointOfInterest,
    RoutePreferences,
    Route,
    LocationFix,
)
from .saved_walk import SavedWalk

__all__ = [
    "DEFAULT_CATEGORY",
    "Vibe",
    "Pace",
    "PolylineSource",
    "Coordinate",
    "RawPOI",
    "Enrichment",
    "PointOfInterest",
    "RoutePreferences",
    "Route",
    "LocationFix",
    "SavedWalk",
]
