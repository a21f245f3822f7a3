"""
Walking path geometry from an OSRM server.
"""

import logging
from typing import Optional, Sequence

import httpx

from app.config.settings import get_settings, RoutingSettings
from app.core.exceptions import RoutingUnavailableError
from app.models.walk import Coordinate
from app.services.geo import parse_coordinate
from app.services.sources import RoutingSource

logger = logging.getLogger(__name__)


class OSRMRoutingSource(RoutingSource):
    """Routing source using the OSRM ``route`` service with GeoJSON geometry."""

    def __init__(
        self,
        config: Optional[RoutingSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or get_settings().routing
        self._transport = transport

    def _route_url(self, waypoints: Sequence[Coordinate]) -> str:
        # OSRM wants lon,lat pairs
        coords = ";".join(f"{c.lon:.6f},{c.lat:.6f}" for c in waypoints)
        return f"{self.config.base_url.rstrip('/')}/route/v1/{self.config.profile}/{coords}"

    async def path(self, waypoints: Sequence[Coordinate]) -> list[Coordinate]:
        if len(waypoints) < 2:
            raise RoutingUnavailableError("at least two waypoints are required")

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self._route_url(waypoints),
                    params={"overview": "full", "geometries": "geojson"},
                )
        except httpx.TimeoutException:
            raise RoutingUnavailableError("timeout")
        except httpx.HTTPError as e:
            raise RoutingUnavailableError(f"transport error: {e}")

        if response.status_code != 200:
            raise RoutingUnavailableError(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise RoutingUnavailableError("invalid JSON response")

        if data.get("code") != "Ok" or not data.get("routes"):
            raise RoutingUnavailableError(data.get("message") or data.get("code") or "no route")

        geometry = data["routes"][0].get("geometry") or {}
        path = []
        for point in geometry.get("coordinates", []):
            if len(point) < 2:
                continue
            coordinate = parse_coordinate(point[1], point[0])
            if coordinate is not None:
                path.append(coordinate)

        logger.debug(f"OSRM returned {len(path)} path points for {len(waypoints)} waypoints")
        return path
