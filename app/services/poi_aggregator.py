"""
POI aggregation for walk generation.

Turns an origin and route preferences into a ranked, deduplicated and
vibe-filtered list of candidate stops:

1. search radius from duration and pace, capped
2. one POI source query per selected interest, run concurrently
3. drop unusable candidates, measure distance, sort nearest first
4. keep the first occurrence of each display name
5. vibe filter with a fallback to the unfiltered list when it gets too thin
6. best-effort enrichment of the first few stops, fanned out in parallel
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import replace
from typing import Optional

from app.config.settings import get_settings, RouteSettings
from app.core.exceptions import (
    InvalidPreferencesError,
    NoCandidatesError,
    SourceUnavailableError,
)
from app.models.walk import (
    Coordinate,
    Pace,
    PointOfInterest,
    RawPOI,
    RoutePreferences,
    SUMMARY_MAX_CHARS,
    Vibe,
)
from app.services.enrichment_service import truncate_summary
from app.services.geo import distance_m
from app.services.overpass_client import category_from_tags
from app.services.sources import EnrichmentSource, POISource, TagClause, TagFilter

logger = logging.getLogger(__name__)


# Interest tags offered to users, mapped to OSM tag filters.
# Clauses inside one filter are a union ("bar or pub" style categories).
INTEREST_FILTERS: dict[str, TagFilter] = {
    "historic": (
        TagClause("historic"),
    ),
    "tourism": (
        TagClause("tourism", ("attraction", "museum", "viewpoint", "artwork", "gallery", "zoo")),
    ),
    "architecture": (
        TagClause("building", ("cathedral", "church", "chapel", "castle", "palace", "tower")),
        TagClause("man_made", ("tower", "lighthouse", "bridge")),
    ),
    "parks": (
        TagClause("leisure", ("park", "garden", "nature_reserve")),
        TagClause("natural", ("wood", "water", "peak", "beach")),
    ),
    "food": (
        TagClause("amenity", ("cafe", "restaurant", "ice_cream")),
    ),
    "nightlife": (
        TagClause("amenity", ("bar", "pub", "biergarten")),
    ),
    "art": (
        TagClause("tourism", ("artwork", "gallery")),
        TagClause("amenity", ("arts_centre",)),
    ),
    "shopping": (
        TagClause("shop", ("mall", "department_store", "books", "gift", "antiques", "art")),
        TagClause("amenity", ("marketplace",)),
    ),
    "photo": (
        TagClause("tourism", ("viewpoint",)),
        TagClause("man_made", ("tower", "lighthouse")),
    ),
    "local": (
        TagClause("amenity", ("marketplace", "fountain")),
        TagClause("historic", ("memorial", "monument")),
    ),
}

# Category substrings each vibe allows; None disables the filter
VIBE_PATTERNS: dict[Vibe, Optional[tuple[str, ...]]] = {
    Vibe.QUIET: ("park", "memorial", "artwork", "viewpoint", "garden", "nature"),
    Vibe.LIVELY: (
        "museum", "attraction", "monument", "castle", "church",
        "restaurant", "bar", "pub", "cafe",
    ),
    Vibe.BALANCED: None,
}

_OSM_KEY = re.compile(r"^[a-z0-9_:]+$")


def filter_for_interest(interest: str) -> TagFilter:
    """Tag filter for an interest; unknown interests query the bare OSM key."""
    key = interest.strip().lower()
    if key in INTEREST_FILTERS:
        return INTEREST_FILTERS[key]
    if not _OSM_KEY.match(key):
        raise InvalidPreferencesError("interests", f"Unknown interest '{interest}'")
    return (TagClause(key),)


def dedupe_by_name(candidates: list[PointOfInterest]) -> list[PointOfInterest]:
    """Keep the first occurrence of each display name (case-sensitive)."""
    seen = set()
    unique = []
    for poi in candidates:
        if poi.name in seen:
            continue
        seen.add(poi.name)
        unique.append(poi)
    return unique


def matches_vibe(poi: PointOfInterest, patterns: tuple[str, ...]) -> bool:
    category = poi.category.lower()
    return any(pattern in category for pattern in patterns)


class POIAggregator:
    """
    Orchestrates POI queries, filtering and enrichment for one route request.

    Args:
        poi_source: where candidate places come from
        enrichment_source: optional descriptive content lookup
        config: route heuristics; defaults to application settings
    """

    def __init__(
        self,
        poi_source: POISource,
        enrichment_source: Optional[EnrichmentSource] = None,
        config: Optional[RouteSettings] = None
    ):
        self.poi_source = poi_source
        self.enrichment_source = enrichment_source
        self.config = config or get_settings().route

    def pace_m_per_min(self, pace: Pace) -> float:
        return {
            Pace.SLOW: self.config.slow_m_per_min,
            Pace.MODERATE: self.config.moderate_m_per_min,
            Pace.FAST: self.config.fast_m_per_min,
        }[Pace(pace)]

    def search_radius(self, prefs: RoutePreferences) -> float:
        """Search radius in meters: walkable distance for the budget, capped."""
        return min(
            prefs.duration_minutes * self.pace_m_per_min(prefs.pace),
            self.config.radius_cap_m
        )

    def vibe_cap(self, vibe: Vibe) -> int:
        return {
            Vibe.QUIET: self.config.quiet_cap,
            Vibe.BALANCED: self.config.balanced_cap,
            Vibe.LIVELY: self.config.lively_cap,
        }[Vibe(vibe)]

    async def aggregate(
        self,
        origin: Coordinate,
        prefs: RoutePreferences
    ) -> list[PointOfInterest]:
        """
        Build the candidate stop list for a route.

        Returns:
            POIs in nearest-first order, capped for the vibe, with enrichment
            attached where it was found

        Raises:
            NoCandidatesError: nothing usable was found in the search radius
            SourceUnavailableError: a POI query failed at the transport level
            InvalidPreferencesError: an interest cannot be turned into a query
        """
        radius = self.search_radius(prefs)
        filters = [(tag, filter_for_interest(tag)) for tag in prefs.interests]

        raw = await self._query_interests(origin, radius, filters)
        candidates = self.rank_candidates(origin, raw)
        if not candidates:
            logger.info(
                f"No candidates within {radius:.0f}m for interests {prefs.interests}"
            )
            raise NoCandidatesError(radius, list(prefs.interests))

        unique = dedupe_by_name(candidates)
        selected = self.apply_vibe(unique, prefs.vibe)

        logger.info(
            f"Aggregated {len(raw)} raw results into {len(selected)} stops",
            extra={
                "radius_m": radius,
                "raw_count": len(raw),
                "unique_count": len(unique),
                "selected_count": len(selected),
                "vibe": prefs.vibe.value,
            }
        )

        return await self.enrich(selected)

    async def _query_interests(
        self,
        origin: Coordinate,
        radius: float,
        filters: list[tuple[str, TagFilter]]
    ) -> list[RawPOI]:
        timeout = self.config.poi_timeout_seconds
        results = await asyncio.gather(
            *(
                asyncio.wait_for(self.poi_source.query(origin, radius, tag_filter), timeout)
                for _, tag_filter in filters
            ),
            return_exceptions=True
        )

        raw: list[RawPOI] = []
        for (tag, _), result in zip(filters, results):
            if isinstance(result, SourceUnavailableError):
                logger.error(f"POI query for '{tag}' failed: {result.message}")
                raise result
            if isinstance(result, asyncio.TimeoutError):
                logger.error(f"POI query for '{tag}' timed out after {timeout}s")
                raise SourceUnavailableError("POI source", "timeout")
            if isinstance(result, BaseException):
                raise result
            raw.extend(result)
        return raw

    def rank_candidates(
        self,
        origin: Coordinate,
        raw: list[RawPOI]
    ) -> list[PointOfInterest]:
        """Drop unusable results, attach distance and sort nearest first (stable)."""
        candidates = []
        for item in raw:
            if not item.name or item.coordinate is None:
                continue
            candidates.append(PointOfInterest(
                id=item.id,
                name=item.name,
                coordinate=item.coordinate,
                category=category_from_tags(item.tags),
                distance_m=distance_m(origin, item.coordinate),
            ))
        candidates.sort(key=lambda poi: poi.distance_m)
        return candidates

    def apply_vibe(
        self,
        candidates: list[PointOfInterest],
        vibe: Vibe
    ) -> list[PointOfInterest]:
        """
        Filter by the vibe's category patterns, falling back to the unfiltered
        list when fewer than the minimum viable number of stops survive.
        """
        vibe = Vibe(vibe)
        cap = self.vibe_cap(vibe)
        patterns = VIBE_PATTERNS[vibe]
        if patterns is None:
            return candidates[:cap]

        filtered = [poi for poi in candidates if matches_vibe(poi, patterns)]
        if len(filtered) < self.config.min_viable_candidates:
            logger.info(
                f"Vibe '{vibe.value}' kept only {len(filtered)} stops; "
                f"falling back to {min(len(candidates), cap)} nearest"
            )
            return candidates[:cap]
        return filtered[:cap]

    async def enrich(self, pois: list[PointOfInterest]) -> list[PointOfInterest]:
        """
        Attach enrichment to the first ``enrichment_limit`` POIs concurrently.

        Each lookup is independent: a failure or empty result leaves that POI
        unenriched and never fails the batch.
        """
        limit = min(len(pois), self.config.enrichment_limit)
        if self.enrichment_source is None or limit == 0:
            return pois

        timeout = self.config.enrichment_timeout_seconds
        results = await asyncio.gather(
            *(
                asyncio.wait_for(self.enrichment_source.lookup(poi.name, poi.coordinate), timeout)
                for poi in pois[:limit]
            ),
            return_exceptions=True
        )

        enriched = []
        failures = 0
        for poi, result in zip(pois, results):
            if isinstance(result, Exception):
                failures += 1
                logger.warning(f"Enrichment failed for '{poi.name}': {result!r}")
                enriched.append(poi)
            elif isinstance(result, BaseException):
                raise result
            elif result is None or result.is_empty:
                enriched.append(poi)
            else:
                enriched.append(replace(
                    poi,
                    image_url=result.image_url,
                    summary=truncate_summary(result.summary, SUMMARY_MAX_CHARS),
                ))

        if failures:
            logger.info(f"Enrichment degraded for {failures}/{limit} stops")
        return enriched + pois[limit:]
