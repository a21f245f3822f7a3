"""
In-memory data sources and fixture builders shared by the tests.
"""
import asyncio
import itertools
import math
from typing import Optional

from app.core.exceptions import EnrichmentUnavailableError
from app.models.walk import (
    Coordinate,
    Enrichment,
    PointOfInterest,
    RawPOI,
    Route,
    RoutePreferences,
)
from app.services.sources import (
    EnrichmentSource,
    POISource,
    ReverseGeocoder,
    RoutingSource,
    TagFilter,
)

BERLIN = Coordinate(lat=52.5200, lon=13.4050)

_ids = itertools.count(1)


def offset(origin: Coordinate, north_m: float = 0.0, east_m: float = 0.0) -> Coordinate:
    """Point roughly ``north_m``/``east_m`` meters away from origin."""
    lat = origin.lat + north_m / 111_320.0
    lon = origin.lon + east_m / (111_320.0 * math.cos(math.radians(origin.lat)))
    return Coordinate(lat=lat, lon=lon)


def raw_poi(name: Optional[str], coordinate: Optional[Coordinate], poi_id: Optional[str] = None, **tags) -> RawPOI:
    return RawPOI(
        id=poi_id or f"node/{next(_ids)}",
        name=name,
        coordinate=coordinate,
        tags=tags,
    )


class FakePOISource(POISource):
    """Answers queries by the first clause key of the tag filter."""

    def __init__(self, by_key=None, default=None, error: Optional[Exception] = None, delay: float = 0.0):
        self.by_key = by_key or {}
        self.default = default or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def query(self, center: Coordinate, radius_m: float, tag_filter: TagFilter) -> list[RawPOI]:
        self.calls.append((center, radius_m, tag_filter))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.by_key.get(tag_filter[0].key, self.default))


class FakeEnrichmentSource(EnrichmentSource):

    def __init__(self, results=None, failing=(), delay: float = 0.0):
        self.results = results or {}
        self.failing = set(failing)
        self.delay = delay
        self.calls = []

    async def lookup(self, name: str, coordinate: Coordinate) -> Enrichment:
        self.calls.append(name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.failing:
            raise EnrichmentUnavailableError(name, "boom")
        return self.results.get(name, Enrichment())


class FakeRoutingSource(RoutingSource):

    def __init__(self, path=None, error: Optional[Exception] = None, delay: float = 0.0):
        self._path = path
        self.error = error
        self.delay = delay
        self.calls = []

    async def path(self, waypoints):
        self.calls.append(list(waypoints))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self._path is None:
            return list(waypoints)
        return list(self._path)


class FakeGeocoder(ReverseGeocoder):

    def __init__(self, label: str = "Mitte, Berlin", error: Optional[Exception] = None):
        self.label = label
        self.error = error

    async def reverse(self, coordinate: Coordinate) -> str:
        if self.error is not None:
            raise self.error
        return self.label


def make_route(distances_m=(100, 200, 300, 400), origin: Coordinate = BERLIN) -> Route:
    """Route with stops due north of the origin at the given distances."""
    stops = [
        PointOfInterest(
            id=f"node/{i}",
            name=f"Stop {i}",
            coordinate=offset(origin, north_m=d),
            category="Monument",
            distance_m=float(d),
        )
        for i, d in enumerate(distances_m)
    ]
    waypoints = [origin] + [s.coordinate for s in stops]
    return Route(
        stops=stops,
        origin=origin,
        polyline=waypoints,
        total_distance_m=float(max(distances_m)),
        estimated_minutes=max(distances_m) / 60.0,
        preferences=RoutePreferences(duration_minutes=60, interests=["historic"]),
    )


