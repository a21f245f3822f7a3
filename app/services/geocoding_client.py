"""
Reverse geocoding of the walk origin through Nominatim.
"""

import logging
from typing import Optional

import httpx

from app.config.settings import get_settings, GeocodingSettings
from app.core.exceptions import SourceUnavailableError
from app.models.walk import Coordinate
from app.services.sources import ReverseGeocoder

logger = logging.getLogger(__name__)

# Address parts from most to least specific
LABEL_KEYS = (
    "neighbourhood",
    "suburb",
    "quarter",
    "city_district",
    "city",
    "town",
    "village",
    "county",
)


def label_from_response(data: dict) -> Optional[str]:
    """Short "Suburb, City" style label from a Nominatim jsonv2 response."""
    address = data.get("address") or {}
    parts = []
    for key in LABEL_KEYS:
        value = address.get(key)
        if value and value not in parts:
            parts.append(value)
        if len(parts) == 2:
            break
    if parts:
        return ", ".join(parts)
    display = data.get("display_name")
    if display:
        return ", ".join(p.strip() for p in display.split(",")[:2])
    return None


class NominatimGeocoder(ReverseGeocoder):

    def __init__(
        self,
        config: Optional[GeocodingSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or get_settings().geocoding
        self._transport = transport

    async def reverse(self, coordinate: Coordinate) -> str:
        params = {
            "lat": coordinate.lat,
            "lon": coordinate.lon,
            "format": "jsonv2",
            "zoom": 16,
            "addressdetails": 1,
        }
        try:
            async with httpx.AsyncClient(
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(f"{self.config.url.rstrip('/')}/reverse", params=params)
        except httpx.HTTPError as e:
            raise SourceUnavailableError("Nominatim", str(e) or type(e).__name__)

        if response.status_code != 200:
            raise SourceUnavailableError("Nominatim", f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise SourceUnavailableError("Nominatim", "invalid JSON response")
        if not isinstance(data, dict):
            raise SourceUnavailableError("Nominatim", "unexpected response payload")

        label = label_from_response(data)
        if not label:
            raise SourceUnavailableError("Nominatim", "no address for coordinate")
        return label
