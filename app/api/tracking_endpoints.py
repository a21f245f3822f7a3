"""
Live walk tracking over a WebSocket.

One connection drives one walk. Client messages (JSON, keyed by ``type``):

- ``start``: ``{"route": {...}}`` as returned by /walks/generate, or ``{"share_id": "..."}``
- ``position``: ``{"lat", "lon", "timestamp"?, "accuracy"?}``
- ``gps_error``: ``{"reason"?}``
- ``next``, ``previous``, ``jump`` (with ``index``), ``finish``, ``end``

Server messages: ``started`` with the session snapshot, ``event`` for every
session event, and ``error`` envelopes for rejected messages. The connection
is closed once the walk is finished or ended; a client disconnect ends the walk.
"""
import asyncio
import logging
import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.core.dependencies import get_walk_store
from app.core.exceptions import ErrorCode, SessionStateError, WalkException
from app.models.walk import LocationFix, Route
from app.services.geo import parse_coordinate
from app.services.location_stream import QueueLocationStream
from app.services.walk_session import WalkEvent, WalkSession, WalkTracker
from app.services.walk_store import WalkStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/walks", tags=["tracking"])

COMMANDS = {"next", "previous", "jump", "finish", "end"}


def event_payload(event: WalkEvent, session: WalkSession) -> dict[str, Any]:
    return {"type": "event", "event": event.to_dict(), "session": session.snapshot()}


def error_payload(exc: WalkException) -> dict[str, Any]:
    return {
        "type": "error",
        "error": exc.message,
        "error_code": exc.error_code.value,
        "details": exc.details or None,
    }


def invalid_position(message: str, **details) -> WalkException:
    return WalkException(message, ErrorCode.VALIDATION_ERROR, details=details, status_code=422)


def optional_number(message: dict, key: str) -> Optional[float]:
    value = message.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise invalid_position(f"Position {key} must be a number", **{key: value})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise invalid_position(f"Position {key} must be a number", **{key: value})
    if not math.isfinite(number):
        raise invalid_position(f"Position {key} must be finite", **{key: value})
    return number


def parse_fix(message: dict) -> LocationFix:
    """Position message to LocationFix; the optional timestamp is the device clock."""
    coordinate = parse_coordinate(message.get("lat"), message.get("lon"))
    if coordinate is None:
        raise invalid_position(
            "Position needs a valid lat and lon",
            lat=message.get("lat"),
            lon=message.get("lon"),
        )
    return LocationFix(
        coordinate=coordinate,
        timestamp=optional_number(message, "timestamp"),
        accuracy_m=optional_number(message, "accuracy"),
    )


async def route_from_start(message: dict, store: WalkStore) -> Route:
    if message.get("share_id"):
        return await store.get(str(message["share_id"]))
    data = message.get("route")
    if not isinstance(data, dict):
        raise SessionStateError("Start needs a route or a share_id")
    try:
        return Route.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SessionStateError(f"Invalid route: {e}")


@router.websocket("/track")
async def track_walk(websocket: WebSocket, store: WalkStore = Depends(get_walk_store)):
    await websocket.accept()

    send_lock = asyncio.Lock()

    async def send(payload: dict) -> None:
        async with send_lock:
            await websocket.send_json(payload)

    stream = QueueLocationStream()
    session: Optional[WalkSession] = None
    tracker: Optional[WalkTracker] = None
    connected = True

    try:
        while session is None or session.is_active:
            message = await websocket.receive_json()
            kind = message.get("type") if isinstance(message, dict) else None
            try:
                if session is None:
                    if kind != "start":
                        raise SessionStateError("Start a walk before sending updates")
                    session = WalkSession(await route_from_start(message, store))

                    async def on_event(event: WalkEvent, session: WalkSession = session) -> None:
                        await send(event_payload(event, session))

                    tracker = WalkTracker(session, stream, on_event=on_event)
                    tracker.start()
                    logger.info(f"Walk started with {len(session.route.stops)} stops")
                    await send({"type": "started", "session": session.snapshot()})
                elif kind == "start":
                    raise SessionStateError("Walk already started")
                elif kind == "position":
                    stream.publish(parse_fix(message))
                elif kind == "gps_error":
                    stream.publish_error(message.get("reason") or "GPS signal lost")
                elif kind in COMMANDS:
                    for event in await session.apply_command(kind, message.get("index")):
                        await send(event_payload(event, session))
                else:
                    raise SessionStateError(f"Unknown message type '{kind}'")
            except WalkException as e:
                logger.warning(f"Rejected tracking message '{kind}': {e.message}")
                await send(error_payload(e))
    except WebSocketDisconnect:
        connected = False
        logger.info("Tracking client disconnected")
    finally:
        if session is not None:
            await session.apply_command("end")
        stream.cancel()
        if tracker is not None:
            try:
                await tracker.stop()
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.warning(f"Tracker stopped with a send failure: {e!r}")

    if connected:
        await websocket.close()
