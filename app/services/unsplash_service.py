"""
Unsplash Image Service - finds a representative photo for a place.

Used as the image fallback when a place has no Wikipedia thumbnail.
"""

import logging
import time
from typing import Optional

import httpx

from app.config.settings import get_settings, UnsplashSettings
from app.core.exceptions import EnrichmentUnavailableError

logger = logging.getLogger(__name__)

# Simple in-memory cache with TTL
_image_cache: dict = {}


class UnsplashImageService:
    """Service for fetching place photos from the Unsplash API."""

    def __init__(
        self,
        config: Optional[UnsplashSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = config or get_settings().unsplash
        self.api_url = self.settings.api_url
        self.access_key = self.settings.access_key
        self.timeout = self.settings.timeout_seconds
        self.cache_ttl = self.settings.cache_ttl_seconds
        self._transport = transport

        if not self.access_key:
            logger.info("Unsplash access key not configured; image fallback disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.access_key)

    def _get_headers(self) -> dict:
        """Get headers for Unsplash API requests."""
        return {
            "Authorization": f"Client-ID {self.access_key}",
            "Accept-Version": "v1",
        }

    async def find_image(self, query: str) -> Optional[str]:
        """
        Search Unsplash for one landscape photo matching the query.

        Args:
            query: Search term (e.g., "Brandenburg Gate")

        Returns:
            Image URL, or None when nothing matched or the API refused

        Raises:
            EnrichmentUnavailableError: on timeout or transport failure
        """
        if not self.enabled:
            return None

        cache_key = query.lower()
        if cache_key in _image_cache:
            cached_time, cached_url = _image_cache[cache_key]
            if time.time() - cached_time < self.cache_ttl:
                logger.debug(f"Cache hit for '{query}'")
                return cached_url

        params = {
            "query": query,
            "per_page": 1,
            "orientation": "landscape",
        }

        try:
            async with httpx.AsyncClient(
                headers=self._get_headers(),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(f"{self.api_url}/search/photos", params=params)
        except httpx.TimeoutException:
            raise EnrichmentUnavailableError(query, "Unsplash timeout")
        except httpx.HTTPError as e:
            raise EnrichmentUnavailableError(query, f"Unsplash transport error: {e}")

        if response.status_code == 401:
            logger.error("Unsplash API authentication failed. Check API key.")
            return None
        if response.status_code == 403:
            logger.error("Unsplash API rate limit exceeded.")
            return None
        if response.status_code != 200:
            logger.warning(
                f"Unsplash API returned {response.status_code} for '{query}'"
            )
            return None

        image_url = None
        for photo in response.json().get("results", []):
            urls = photo.get("urls", {})
            # Prefer 'regular' size (1080px width), fallback to 'small'
            image_url = urls.get("regular") or urls.get("small")
            if image_url:
                break

        _image_cache[cache_key] = (time.time(), image_url)
        return image_url


# Singleton instance
_service: Optional[UnsplashImageService] = None


def get_unsplash_service() -> UnsplashImageService:
    """Get the Unsplash image service singleton."""
    global _service
    if _service is None:
        _service = UnsplashImageService()
    return _service
