"""
Capability interfaces for the external collaborators used by route generation.

Implementations report failures as the typed exceptions in
``app.core.exceptions`` instead of returning silent empty results, so callers
decide which failures to absorb.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from app.models.walk import Coordinate, Enrichment, RawPOI


@dataclass(frozen=True)
class TagClause:
    """
    One OSM tag condition. ``values=None`` matches any value of ``key``.

    A filter is a tuple of clauses combined as a union, so "bar or pub" is
    ``(TagClause("amenity", ("bar", "pub")),)``.
    """
    key: str
    values: Optional[tuple[str, ...]] = None


TagFilter = tuple[TagClause, ...]


class POISource(ABC):
    """Third-party POI database."""

    @abstractmethod
    async def query(
        self,
        center: Coordinate,
        radius_m: float,
        tag_filter: TagFilter
    ) -> list[RawPOI]:
        """
        Return raw POIs matching any clause of ``tag_filter`` within the radius.

        Raises:
            SourceUnavailableError: the query transport failed
        """


class EnrichmentSource(ABC):
    """Descriptive content lookup for a named place."""

    @abstractmethod
    async def lookup(self, name: str, coordinate: Coordinate) -> Enrichment:
        """
        Return enrichment for the place; an empty Enrichment means nothing found.

        Raises:
            EnrichmentUnavailableError: the lookup transport failed
        """


class RoutingSource(ABC):
    """Walkable path geometry between waypoints."""

    @abstractmethod
    async def path(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        """
        Return a dense polyline through the waypoints in order.

        Raises:
            RoutingUnavailableError: no path could be obtained
        """


class ReverseGeocoder(ABC):
    """Human-readable label for a coordinate."""

    @abstractmethod
    async def reverse(self, coordinate: Coordinate) -> str:
        """
        Raises:
            SourceUnavailableError: the geocoder could not be reached or had no answer
        """
