# Business logic services

from .sources import (
    TagClause,
    TagFilter,
    POISource,
    EnrichmentSource,
    RoutingSource,
    ReverseGeocoder,
)
from .overpass_client import OverpassPOISource
from .enrichment_service import WikipediaEnrichmentService
from .unsplash_service import UnsplashImageService, get_unsplash_service
from .routing_client import OSRMRoutingSource
from .geocoding_client import NominatimGeocoder
from .poi_aggregator import POIAggregator
from .route_builder import RouteBuilder
from .location_stream import LocationStream, QueueLocationStream, resolve_origin
from .walk_session import WalkSession, WalkTracker, WalkEvent, EventType, SessionStatus
from .walk_store import WalkStore

__all__ = [
    'TagClause',
    'TagFilter',
    'POISource',
    'EnrichmentSource',
    'RoutingSource',
    'ReverseGeocoder',
    'OverpassPOISource',
    'WikipediaEnrichmentService',
    'UnsplashImageService',
    'get_unsplash_service',
    'OSRMRoutingSource',
    'NominatimGeocoder',
    'POIAggregator',
    'RouteBuilder',
    'LocationStream',
    'QueueLocationStream',
    'resolve_origin',
    'WalkSession',
    'WalkTracker',
    'WalkEvent',
    'EventType',
    'SessionStatus',
    'WalkStore',
]
