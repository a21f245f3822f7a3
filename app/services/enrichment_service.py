"""
Place enrichment from Wikipedia, with Unsplash as an image fallback.

Looks up Wikipedia articles geotagged near the place and picks the one whose
title matches the place name; its lead extract becomes the summary and its
thumbnail the image.
"""

import logging
import re
from typing import Optional

import httpx

from app.config.settings import get_settings, WikipediaSettings
from app.core.exceptions import EnrichmentUnavailableError
from app.models.walk import Coordinate, Enrichment
from app.services.sources import EnrichmentSource
from app.services.unsplash_service import UnsplashImageService

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w]+", re.UNICODE)


def normalize_title(text: str) -> str:
    return _NON_WORD.sub(" ", text.casefold()).strip()


def truncate_summary(text: Optional[str], max_chars: int) -> Optional[str]:
    """Collapse whitespace and cut to ``max_chars``, ending with an ellipsis when cut."""
    if not text:
        return None
    text = " ".join(text.split())
    if not text:
        return None
    if len(text) <= max_chars:
        return text
    cut = text[: max_chars - 1].rstrip()
    # Prefer a word boundary when one is reasonably close
    space = cut.rfind(" ")
    if space > max_chars * 0.6:
        cut = cut[:space]
    return cut.rstrip(" ,;:") + "…"


def match_page(name: str, pages: list[dict]) -> Optional[dict]:
    """Pick the page whose title best matches the place name, or None."""
    wanted = normalize_title(name)
    if not wanted:
        return None
    contains = None
    for page in pages:
        title = normalize_title(page.get("title", ""))
        if not title:
            continue
        if title == wanted:
            return page
        if contains is None and (wanted in title or title in wanted):
            contains = page
    return contains


class WikipediaEnrichmentService(EnrichmentSource):
    """Enrichment source backed by the MediaWiki geosearch API."""

    def __init__(
        self,
        config: Optional[WikipediaSettings] = None,
        image_fallback: Optional[UnsplashImageService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or get_settings().wikipedia
        self.image_fallback = image_fallback
        self._transport = transport

    def _params(self, coordinate: Coordinate) -> dict:
        return {
            "action": "query",
            "format": "json",
            "formatversion": 2,
            "generator": "geosearch",
            "ggscoord": f"{coordinate.lat}|{coordinate.lon}",
            "ggsradius": self.config.search_radius_m,
            "ggslimit": 10,
            "prop": "extracts|pageimages",
            "exintro": 1,
            "explaintext": 1,
            "exsentences": 2,
            "piprop": "thumbnail",
            "pithumbsize": 640,
        }

    async def lookup(self, name: str, coordinate: Coordinate) -> Enrichment:
        try:
            async with httpx.AsyncClient(
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(self.config.api_url, params=self._params(coordinate))
        except httpx.TimeoutException:
            raise EnrichmentUnavailableError(name, "Wikipedia timeout")
        except httpx.HTTPError as e:
            raise EnrichmentUnavailableError(name, f"Wikipedia transport error: {e}")

        if response.status_code != 200:
            raise EnrichmentUnavailableError(name, f"Wikipedia HTTP {response.status_code}")

        pages = response.json().get("query", {}).get("pages", [])
        page = match_page(name, pages)

        enrichment = Enrichment()
        if page:
            enrichment.summary = truncate_summary(
                page.get("extract"), self.config.summary_max_chars
            )
            enrichment.image_url = (page.get("thumbnail") or {}).get("source")
            logger.debug(f"Matched '{name}' to Wikipedia article '{page.get('title')}'")

        if not enrichment.image_url and self.image_fallback is not None:
            enrichment.image_url = await self.image_fallback.find_image(name)

        return enrichment
