"""
Live walk tracking.

``WalkSession`` is the per-walk state machine: which stop is active, which
stops have been reached, and the arrival/progress events that follow from
each position fix or navigation command. It is created when a user commits to
a route and discarded when the walk is finished or ended; nothing about it is
global.

``WalkTracker`` is the single consumer that pulls fixes from a
LocationStream and applies them to a session one at a time.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from app.config.settings import get_settings
from app.core.exceptions import LocationUnavailableError, SessionStateError
from app.models.walk import Coordinate, LocationFix, PointOfInterest, Route
from app.services.geo import distance_m
from app.services.location_stream import LocationStream

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"
    ENDED = "ended"


class EventType(str, Enum):
    PROGRESS = "progress"
    ARRIVAL = "arrival"
    STOP_CHANGED = "stop_changed"
    SIGNAL_LOST = "signal_lost"
    SIGNAL_RESTORED = "signal_restored"
    SESSION_ENDED = "session_ended"


@dataclass
class WalkEvent:
    """Something the UI should react to"""
    type: EventType
    index: int
    progress: float
    distance_m: Optional[float] = None
    stop: Optional[PointOfInterest] = None
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "index": self.index,
            "progress": self.progress,
            "distance_m": self.distance_m,
            "stop": self.stop.to_dict() if self.stop else None,
            "message": self.message,
        }


@dataclass
class WalkSessionState:
    route: Route
    current_index: int = 0
    completed: set[int] = field(default_factory=set)
    last_position: Optional[Coordinate] = None
    last_distance_m: Optional[float] = None
    last_fix_time: Optional[float] = None
    status: SessionStatus = SessionStatus.ACTIVE
    signal_lost: bool = False


class WalkSession:
    """
    State machine for one walk.

    The synchronous methods hold the transition logic. Concurrent callers
    (the tracker task and command handlers) must go through the ``apply_*``
    coroutines, which serialize every read-modify-write on the session lock.
    """

    def __init__(
        self,
        route: Route,
        arrival_threshold_m: Optional[float] = None,
        stream: Optional[LocationStream] = None
    ):
        if not route.stops:
            raise SessionStateError("Cannot start a walk without stops")
        self.state = WalkSessionState(route=route)
        if arrival_threshold_m is None:
            arrival_threshold_m = get_settings().tracking.arrival_threshold_m
        self.arrival_threshold_m = arrival_threshold_m
        self.stream = stream
        self._lock = asyncio.Lock()

    # -- read-only views ---------------------------------------------------

    @property
    def route(self) -> Route:
        return self.state.route

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_stop(self) -> PointOfInterest:
        return self.route.stops[self.state.current_index]

    @property
    def completed(self) -> frozenset[int]:
        return frozenset(self.state.completed)

    @property
    def last_index(self) -> int:
        return len(self.route.stops) - 1

    @property
    def is_last_stop(self) -> bool:
        return self.state.current_index == self.last_index

    @property
    def is_active(self) -> bool:
        return self.state.status == SessionStatus.ACTIVE

    @property
    def progress(self) -> float:
        """Fraction of stops reached; display only."""
        return len(self.state.completed) / len(self.route.stops)

    @property
    def is_complete(self) -> bool:
        return self.is_last_stop and len(self.state.completed) == len(self.route.stops)

    @property
    def can_finish(self) -> bool:
        return self.is_active and self.is_last_stop and self.state.current_index in self.state.completed

    def snapshot(self) -> dict[str, Any]:
        return {
            "status": self.state.status.value,
            "current_index": self.state.current_index,
            "completed": sorted(self.state.completed),
            "progress": self.progress,
            "distance_m": self.state.last_distance_m,
            "signal_lost": self.state.signal_lost,
            "total_stops": len(self.route.stops),
        }

    # -- transitions -------------------------------------------------------

    def _event(self, type_: EventType, **kwargs) -> WalkEvent:
        return WalkEvent(
            type=type_,
            index=self.state.current_index,
            progress=self.progress,
            **kwargs
        )

    def _require_active(self, action: str) -> None:
        if not self.is_active:
            raise SessionStateError(
                f"Cannot {action}: walk is {self.state.status.value}",
                details={"status": self.state.status.value}
            )

    def on_position(self, fix: Union[LocationFix, Coordinate]) -> list[WalkEvent]:
        """
        Apply a position fix to the active stop.

        Emits a progress event, and an arrival event the first time the active
        stop is within the arrival threshold (strictly closer). Fixes older
        than the last timestamped one and fixes after the walk is over are ignored.
        """
        if not self.is_active:
            return []

        if isinstance(fix, LocationFix):
            if fix.timestamp is not None:
                # Device clocks are only comparable with themselves
                if self.state.last_fix_time is not None and fix.timestamp < self.state.last_fix_time:
                    logger.debug("Ignoring out-of-order location fix")
                    return []
                self.state.last_fix_time = fix.timestamp
            position = fix.coordinate
        else:
            position = fix

        events = []
        if self.state.signal_lost:
            self.state.signal_lost = False
            events.append(self._event(EventType.SIGNAL_RESTORED, message="GPS signal restored"))

        stop = self.current_stop
        distance = distance_m(position, stop.coordinate)
        self.state.last_position = position
        self.state.last_distance_m = distance
        events.append(self._event(EventType.PROGRESS, distance_m=distance))

        index = self.state.current_index
        if distance < self.arrival_threshold_m and index not in self.state.completed:
            self.state.completed.add(index)
            logger.info(f"Arrived at stop {index} ({stop.name})", extra={"distance_m": round(distance, 1)})
            events.append(self._event(EventType.ARRIVAL, distance_m=distance, stop=stop))

        return events

    def on_signal_lost(self, reason: str = "GPS signal lost") -> list[WalkEvent]:
        """Record a positioning failure; the walk carries on."""
        if not self.is_active or self.state.signal_lost:
            return []
        self.state.signal_lost = True
        logger.warning(f"Location signal lost: {reason}")
        return [self._event(EventType.SIGNAL_LOST, message=reason)]

    def _move_to(self, index: int) -> list[WalkEvent]:
        if index == self.state.current_index:
            return []
        self.state.current_index = index
        distance = None
        if self.state.last_position is not None:
            distance = distance_m(self.state.last_position, self.current_stop.coordinate)
        self.state.last_distance_m = distance
        return [self._event(EventType.STOP_CHANGED, distance_m=distance, stop=self.current_stop)]

    def next(self) -> list[WalkEvent]:
        """Advance to the next stop; no-op on the last stop."""
        self._require_active("move to the next stop")
        if self.is_last_stop:
            return []
        return self._move_to(self.state.current_index + 1)

    def previous(self) -> list[WalkEvent]:
        """Go back one stop; no-op on the first stop."""
        self._require_active("move to the previous stop")
        if self.state.current_index == 0:
            return []
        return self._move_to(self.state.current_index - 1)

    def jump_to(self, index: int) -> list[WalkEvent]:
        """Make any stop active, completed or not. Completion is unchanged."""
        self._require_active("jump to a stop")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= self.last_index:
            raise SessionStateError(
                f"Stop index {index} out of range",
                details={"index": index, "total_stops": len(self.route.stops)}
            )
        return self._move_to(index)

    def finish(self) -> list[WalkEvent]:
        """Complete the walk; only allowed on the last stop once it has been reached."""
        self._require_active("finish the walk")
        if not self.can_finish:
            raise SessionStateError(
                "Reach the last stop before finishing the walk",
                details={
                    "current_index": self.state.current_index,
                    "completed": sorted(self.state.completed),
                }
            )
        return self._close(SessionStatus.FINISHED)

    def end(self) -> list[WalkEvent]:
        """End the walk early. Always allowed; repeated calls do nothing."""
        if not self.is_active:
            return []
        return self._close(SessionStatus.ENDED)

    def _close(self, status: SessionStatus) -> list[WalkEvent]:
        self.state.status = status
        if self.stream is not None:
            self.stream.cancel()
        logger.info(
            f"Walk {status.value} with {len(self.state.completed)}/{len(self.route.stops)} stops reached"
        )
        return [self._event(EventType.SESSION_ENDED, message=status.value)]

    # -- serialized entry points -------------------------------------------

    async def apply_position(self, fix: Union[LocationFix, Coordinate]) -> list[WalkEvent]:
        async with self._lock:
            return self.on_position(fix)

    async def apply_signal_lost(self, reason: str = "GPS signal lost") -> list[WalkEvent]:
        async with self._lock:
            return self.on_signal_lost(reason)

    async def apply_command(self, command: str, index: Optional[int] = None) -> list[WalkEvent]:
        """Run a navigation command by name: next, previous, jump, finish or end."""
        async with self._lock:
            if command == "next":
                return self.next()
            if command == "previous":
                return self.previous()
            if command == "jump":
                return self.jump_to(index)
            if command == "finish":
                return self.finish()
            if command == "end":
                return self.end()
            raise SessionStateError(f"Unknown command '{command}'", details={"command": command})


EventCallback = Callable[[WalkEvent], Awaitable[None]]


class WalkTracker:
    """
    Pulls fixes from a LocationStream and applies them to a session in order.

    The tracker attaches the stream to the session so that finishing or ending
    the walk cancels the stream, which in turn stops the tracker.
    """

    def __init__(
        self,
        session: WalkSession,
        stream: LocationStream,
        on_event: Optional[EventCallback] = None
    ):
        self.session = session
        self.stream = stream
        self.session.stream = stream
        self.on_event = on_event
        self._task: Optional[asyncio.Task] = None

    async def _emit(self, events: list[WalkEvent]) -> None:
        if self.on_event is None:
            return
        for event in events:
            await self.on_event(event)

    async def run(self) -> None:
        while self.session.is_active:
            try:
                fix = await self.stream.next_fix()
            except LocationUnavailableError as e:
                await self._emit(await self.session.apply_signal_lost(e.details.get("reason", e.message)))
                continue
            if fix is None:
                break
            await self._emit(await self.session.apply_position(fix))
        logger.debug("Walk tracker stopped")

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the stream and wait for the consumer task to exit."""
        self.stream.cancel()
        if self._task is not None:
            await self._task
