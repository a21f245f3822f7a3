"""
Dependency injection setup for FastAPI.

The service container builds the external data sources once at startup and
hands out route builders that share them. Tests replace ``get_route_builder``
through ``app.dependency_overrides``.
"""

from fastapi import Depends, HTTPException
from starlette.requests import HTTPConnection
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import asyncio
import logging

from app.config.settings import get_settings, Settings
from app.core.db import get_db
from app.services.enrichment_service import WikipediaEnrichmentService
from app.services.geocoding_client import NominatimGeocoder
from app.services.overpass_client import OverpassPOISource
from app.services.poi_aggregator import POIAggregator
from app.services.route_builder import RouteBuilder
from app.services.routing_client import OSRMRoutingSource
from app.services.unsplash_service import get_unsplash_service
from app.services.walk_store import WalkStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds the shared data sources and the route builder built from them."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._route_builder: Optional[RouteBuilder] = None
        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    async def initialize_services(self) -> None:
        async with self._initialization_lock:
            if self._initialized:
                return

            logger.info("Initializing service container")

            unsplash = get_unsplash_service()
            aggregator = POIAggregator(
                poi_source=OverpassPOISource(self.settings.overpass),
                enrichment_source=WikipediaEnrichmentService(
                    self.settings.wikipedia,
                    image_fallback=unsplash if unsplash.enabled else None,
                ),
                config=self.settings.route,
            )
            self._route_builder = RouteBuilder(
                aggregator,
                routing_source=OSRMRoutingSource(self.settings.routing),
                geocoder=NominatimGeocoder(self.settings.geocoding),
                geocoding_config=self.settings.geocoding,
            )

            self._initialized = True
            logger.info("Service container initialization completed")

    async def cleanup_services(self) -> None:
        logger.info("Cleaning up service container")
        self._route_builder = None
        self._initialized = False

    def get_route_builder(self) -> RouteBuilder:
        if not self._initialized or self._route_builder is None:
            raise RuntimeError("Service container not initialized")
        return self._route_builder


# Global service container
service_container = ServiceContainer()


def get_service_container(conn: HTTPConnection) -> ServiceContainer:
    """Service container from application state."""
    container = getattr(conn.app.state, 'service_container', None)
    if container is None:
        logger.error("Service container not initialized")
        raise HTTPException(status_code=500, detail="Service container not available")
    return container


def get_route_builder(
    container: ServiceContainer = Depends(get_service_container)
) -> RouteBuilder:
    """Dependency provider for RouteBuilder."""
    try:
        return container.get_route_builder()
    except RuntimeError as e:
        logger.error(f"Route builder not available: {e}")
        raise HTTPException(status_code=500, detail="Route builder not available")


def get_walk_store(db: AsyncSession = Depends(get_db)) -> WalkStore:
    """Dependency provider for WalkStore."""
    return WalkStore(db)
