"""
Route building: sequence aggregated stops and attach display geometry.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from app.config.settings import get_settings, GeocodingSettings
from app.core.exceptions import (
    NoCandidatesError,
    RouteGenerationError,
    RoutingUnavailableError,
    SourceUnavailableError,
)
from app.models.walk import (
    Coordinate,
    PointOfInterest,
    PolylineSource,
    Route,
    RoutePreferences,
)
from app.services.geo import distance_m, path_length_m, straight_line_polyline
from app.services.poi_aggregator import POIAggregator
from app.services.sources import ReverseGeocoder, RoutingSource

logger = logging.getLogger(__name__)


def nearest_neighbour_order(
    origin: Coordinate,
    stops: list[PointOfInterest]
) -> list[PointOfInterest]:
    """
    Greedy nearest-neighbour visiting order starting at the origin.

    Opt-in alternative to the default nearest-to-origin order; usually shortens
    the walk but still makes no optimality guarantee.
    """
    remaining = list(stops)
    ordered = []
    position = origin
    while remaining:
        nearest = min(remaining, key=lambda poi: distance_m(position, poi.coordinate))
        remaining.remove(nearest)
        ordered.append(nearest)
        position = nearest.coordinate
    return ordered


class RouteBuilder:
    """
    Builds a walkable Route from an origin and preferences.

    Stops are visited nearest-to-origin first, exactly as the aggregator ranks
    them. The routing source only supplies display geometry: distance and time
    estimates always come from straight-line legs.
    """

    def __init__(
        self,
        aggregator: POIAggregator,
        routing_source: Optional[RoutingSource] = None,
        geocoder: Optional[ReverseGeocoder] = None,
        geocoding_config: Optional[GeocodingSettings] = None,
        routing_timeout_seconds: Optional[float] = None
    ):
        self.aggregator = aggregator
        self.routing_source = routing_source
        self.geocoder = geocoder
        self.geocoding_config = geocoding_config or get_settings().geocoding
        # Outer bound on top of the client's own HTTP timeout
        self.routing_timeout = routing_timeout_seconds or get_settings().routing.timeout_seconds + 5

    async def build(
        self,
        origin: Coordinate,
        prefs: RoutePreferences,
        optimize_order: bool = False
    ) -> Route:
        """
        Generate a route.

        Args:
            origin: starting point
            prefs: duration, interests, vibe and pace
            optimize_order: reorder stops by greedy nearest neighbour

        Raises:
            RouteGenerationError: no candidates, or the POI source failed;
                the original error is kept as ``reason``
        """
        try:
            stops = await self.aggregator.aggregate(origin, prefs)
        except (NoCandidatesError, SourceUnavailableError) as e:
            logger.warning(f"Route generation failed: {e.error_code.value}")
            raise RouteGenerationError(e) from e

        if optimize_order:
            stops = nearest_neighbour_order(origin, stops)

        waypoints = [origin] + [stop.coordinate for stop in stops]

        if self.geocoder is not None:
            (polyline, source), label = await asyncio.gather(
                self.polyline_for(waypoints),
                self.label_for(origin),
            )
        else:
            polyline, source = await self.polyline_for(waypoints)
            label = None

        total = path_length_m(waypoints)
        route = Route(
            stops=stops,
            origin=origin,
            polyline=polyline,
            total_distance_m=total,
            estimated_minutes=total / self.aggregator.pace_m_per_min(prefs.pace),
            preferences=prefs,
            origin_label=label,
            polyline_source=source,
        )

        logger.info(
            f"Built route with {len(stops)} stops, {total:.0f}m",
            extra={
                "stop_count": len(stops),
                "total_distance_m": round(total, 1),
                "polyline_source": source.value,
            }
        )
        return route

    async def polyline_for(
        self,
        waypoints: list[Coordinate]
    ) -> tuple[list[Coordinate], PolylineSource]:
        """Walkable path through the waypoints, or straight segments if routing fails."""
        if self.routing_source is None or len(waypoints) < 2:
            return straight_line_polyline(waypoints), PolylineSource.STRAIGHT_LINE

        try:
            path = await asyncio.wait_for(
                self.routing_source.path(waypoints), self.routing_timeout
            )
        except (RoutingUnavailableError, asyncio.TimeoutError) as e:
            reason = e.message if isinstance(e, RoutingUnavailableError) else "timeout"
            logger.warning(f"Routing unavailable ({reason}); using straight-line path")
            return straight_line_polyline(waypoints), PolylineSource.STRAIGHT_LINE

        if not path:
            logger.warning("Routing returned an empty path; using straight-line path")
            return straight_line_polyline(waypoints), PolylineSource.STRAIGHT_LINE

        return path, PolylineSource.ROUTING

    async def label_for(self, origin: Coordinate) -> str:
        """Display label for the origin, falling back to the configured default."""
        try:
            return await asyncio.wait_for(
                self.geocoder.reverse(origin), self.geocoding_config.timeout_seconds + 5
            )
        except (SourceUnavailableError, asyncio.TimeoutError) as e:
            logger.info(f"Reverse geocoding failed ({e!r}); using default label")
            return self.geocoding_config.default_label
