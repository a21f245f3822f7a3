"""
Cancellable streams of position fixes.

A LocationStream has exactly one consumer, which pulls fixes with
``next_fix()``. Transient positioning failures surface as
``LocationUnavailableError`` from ``next_fix()`` without closing the stream;
``None`` means the stream is closed for good.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

from app.config.settings import get_settings, TrackingSettings
from app.core.exceptions import LocationUnavailableError
from app.models.walk import Coordinate, LocationFix

logger = logging.getLogger(__name__)

_CLOSED = object()


class LocationStream(ABC):

    @abstractmethod
    async def next_fix(self) -> Optional[LocationFix]:
        """
        Wait for the next fix.

        Returns:
            The fix, or None once the stream is cancelled

        Raises:
            LocationUnavailableError: positioning failed; later fixes may still arrive
        """

    @abstractmethod
    def cancel(self) -> None:
        """Stop the stream. No fix is delivered after this returns."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class QueueLocationStream(LocationStream):
    """
    In-process stream fed by a producer (a WebSocket reader, a GPS poller, a
    replay file) through ``publish`` and ``publish_error``.
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[Union[LocationFix, LocationUnavailableError, object]] = (
            asyncio.Queue(maxsize=maxsize)
        )
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def publish(self, fix: LocationFix) -> bool:
        """Queue a fix; returns False if the stream is already cancelled."""
        if self._cancelled:
            return False
        self._queue.put_nowait(fix)
        return True

    def publish_error(self, reason: str = "GPS signal lost") -> bool:
        if self._cancelled:
            return False
        self._queue.put_nowait(LocationUnavailableError(reason))
        return True

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        # Wake a consumer blocked in next_fix()
        self._queue.put_nowait(_CLOSED)

    async def next_fix(self) -> Optional[LocationFix]:
        if self._cancelled:
            return None
        item = await self._queue.get()
        if self._cancelled or item is _CLOSED:
            return None
        if isinstance(item, LocationUnavailableError):
            raise item
        return item


def default_origin(config: Optional[TrackingSettings] = None) -> Optional[Coordinate]:
    """The configured fallback origin, if one is set."""
    config = config or get_settings().tracking
    if config.default_origin_lat is None or config.default_origin_lon is None:
        return None
    return Coordinate(lat=config.default_origin_lat, lon=config.default_origin_lon)


async def resolve_origin(
    stream: Optional[LocationStream],
    config: Optional[TrackingSettings] = None
) -> Coordinate:
    """
    Origin for route generation from the first available fix.

    Waits at most ``location_timeout_seconds``; on timeout, positioning error
    or a closed stream, falls back to the default origin.

    Raises:
        LocationUnavailableError: no fix and no default origin configured
    """
    config = config or get_settings().tracking
    reason = "no location source"

    if stream is not None:
        try:
            fix = await asyncio.wait_for(stream.next_fix(), config.location_timeout_seconds)
        except asyncio.TimeoutError:
            reason = f"no fix within {config.location_timeout_seconds:g}s"
        except LocationUnavailableError as e:
            reason = e.details.get("reason", e.message)
        else:
            if fix is not None:
                return fix.coordinate
            reason = "location stream closed"

    fallback = default_origin(config)
    if fallback is None:
        raise LocationUnavailableError(reason)

    logger.info(f"Using default origin ({reason})")
    return fallback
