"""
OpenStreetMap POI source backed by the Overpass API.
"""

import logging
from typing import Optional

import httpx

from app.config.settings import get_settings, OverpassSettings
from app.core.exceptions import SourceUnavailableError
from app.models.walk import Coordinate, RawPOI, DEFAULT_CATEGORY
from app.services.geo import parse_coordinate
from app.services.sources import POISource, TagClause, TagFilter

logger = logging.getLogger(__name__)

# Tag keys that describe what a place is, most specific first
CATEGORY_KEYS = (
    "tourism",
    "historic",
    "leisure",
    "amenity",
    "natural",
    "man_made",
    "building",
    "shop",
)


def category_from_tags(tags: dict) -> str:
    """Derive a display category from OSM tags, e.g. ``tourism=museum`` -> "Museum"."""
    for key in CATEGORY_KEYS:
        value = tags.get(key)
        if not value or value in ("yes", "no"):
            if value == "yes" and key == "historic":
                return "Historic site"
            continue
        label = value.replace("_", " ").strip()
        if key == "shop":
            label = f"{label} shop"
        return label[:1].upper() + label[1:]
    return DEFAULT_CATEGORY


def _clause_selector(clause: TagClause) -> str:
    if not clause.values:
        return f'["{clause.key}"]'
    if len(clause.values) == 1:
        return f'["{clause.key}"="{clause.values[0]}"]'
    return f'["{clause.key}"~"^({"|".join(clause.values)})$"]'


def build_overpass_query(
    center: Coordinate,
    radius_m: float,
    tag_filter: TagFilter,
    timeout_seconds: int
) -> str:
    """Build a single Overpass QL union query covering every clause of the filter."""
    around = f"(around:{radius_m:.0f},{center.lat:.6f},{center.lon:.6f})"
    statements = []
    for clause in tag_filter:
        selector = _clause_selector(clause)
        statements.append(f"  node{selector}{around};")
        statements.append(f"  way{selector}{around};")
    body = "\n".join(statements)
    return f"[out:json][timeout:{timeout_seconds}];\n(\n{body}\n);\nout center tags;"


def parse_elements(data: dict) -> list[RawPOI]:
    """Convert an Overpass JSON response into raw POIs.

    Nodes carry their own coordinate; ways and relations use the ``center``
    Overpass computes for them. Elements without a name are kept with
    ``name=None`` so the aggregator decides what to drop.
    """
    pois = []
    for element in data.get("elements", []):
        el_type = element.get("type")
        el_id = element.get("id")
        if el_type is None or el_id is None:
            continue
        tags = element.get("tags") or {}

        if el_type == "node":
            coordinate = parse_coordinate(element.get("lat"), element.get("lon"))
        else:
            center = element.get("center") or {}
            coordinate = parse_coordinate(center.get("lat"), center.get("lon"))

        name = tags.get("name") or tags.get("name:en")
        pois.append(RawPOI(
            id=f"{el_type}/{el_id}",
            name=name.strip() if isinstance(name, str) and name.strip() else None,
            coordinate=coordinate,
            tags=dict(tags),
        ))
    return pois


class OverpassPOISource(POISource):
    """Fetch points of interest from OpenStreetMap via the Overpass API"""

    def __init__(
        self,
        config: Optional[OverpassSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or get_settings().overpass
        self._transport = transport

    async def query(
        self,
        center: Coordinate,
        radius_m: float,
        tag_filter: TagFilter
    ) -> list[RawPOI]:
        query = build_overpass_query(
            center, radius_m, tag_filter, self.config.timeout_seconds
        )
        logger.info(
            f"Querying Overpass around ({center.lat:.5f}, {center.lon:.5f}), "
            f"radius {radius_m:.0f}m, {len(tag_filter)} clause(s)"
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds + 5,
                transport=self._transport,
            ) as client:
                response = await client.post(self.config.url, data={"data": query})
        except httpx.TimeoutException:
            logger.warning("Overpass query timed out")
            raise SourceUnavailableError("Overpass", "timeout")
        except httpx.HTTPError as e:
            logger.error(f"Overpass transport error: {e}")
            raise SourceUnavailableError("Overpass", str(e))

        if response.status_code == 429:
            logger.warning("Overpass rate limit exceeded")
            raise SourceUnavailableError("Overpass", "rate limited")
        if response.status_code != 200:
            logger.warning(f"Overpass returned {response.status_code}")
            raise SourceUnavailableError("Overpass", f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            raise SourceUnavailableError("Overpass", "invalid JSON response")

        remark = data.get("remark") or ""
        if not data.get("elements") and "error" in remark.lower():
            logger.warning(f"Overpass query failed: {remark}")
            raise SourceUnavailableError("Overpass", remark)

        pois = parse_elements(data)
        logger.info(f"Overpass returned {len(pois)} elements")
        return pois
