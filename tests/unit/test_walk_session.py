"""
Unit tests for the walk session state machine and tracker
"""
import asyncio
import math

import pytest

from app.core.exceptions import SessionStateError
from app.models.walk import LocationFix
from app.services.geo import distance_m
from app.services.location_stream import QueueLocationStream
from app.services.walk_session import (
    EventType,
    SessionStatus,
    WalkSession,
    WalkTracker,
)
from tests.fakes import make_route, offset


def near(stop, meters):
    """Position ``meters`` south of a stop."""
    return offset(stop.coordinate, north_m=-meters)


def types(events):
    return [e.type for e in events]


def test_session_requires_stops(route):
    route.stops = []
    with pytest.raises(SessionStateError):
        WalkSession(route)


def test_arrival_is_emitted_once(route):
    session = WalkSession(route, arrival_threshold_m=50)
    stop0 = route.stops[0]

    first = session.on_position(near(stop0, 40))
    second = session.on_position(near(stop0, 40))

    assert types(first) == [EventType.PROGRESS, EventType.ARRIVAL]
    assert first[1].stop == stop0
    assert types(second) == [EventType.PROGRESS]
    assert session.completed == {0}
    assert session.progress == 0.25


def test_next_keeps_completion_and_tracks_new_stop(route):
    session = WalkSession(route, arrival_threshold_m=50)
    stop0, stop1 = route.stops[0], route.stops[1]

    session.on_position(near(stop0, 40))
    session.on_position(near(stop0, 40))
    changed = session.next()
    events = session.on_position(near(stop0, 40))

    assert types(changed) == [EventType.STOP_CHANGED]
    assert changed[0].index == 1
    assert types(events) == [EventType.PROGRESS]
    assert events[0].index == 1
    # 40 m short of stop 0, stop 1 is 100 m further north
    assert events[0].distance_m == pytest.approx(140, abs=2)
    assert session.completed == {0}
    assert session.current_stop == stop1


def test_arrival_threshold_is_strict():
    route = make_route(distances_m=(1000, 2000))
    stop = route.stops[0]
    position = near(stop, 50)
    d = distance_m(position, stop.coordinate)

    at_threshold = WalkSession(route, arrival_threshold_m=d)
    events = at_threshold.on_position(position)
    assert types(events) == [EventType.PROGRESS]
    assert at_threshold.completed == frozenset()

    just_inside = WalkSession(route, arrival_threshold_m=math.nextafter(d, math.inf))
    events = just_inside.on_position(position)
    assert types(events) == [EventType.PROGRESS, EventType.ARRIVAL]


def test_zero_threshold_is_not_replaced_by_default(route):
    session = WalkSession(route, arrival_threshold_m=0)
    assert session.arrival_threshold_m == 0
    assert EventType.ARRIVAL not in types(session.on_position(route.stops[0].coordinate))


def test_stale_fix_is_ignored(route):
    session = WalkSession(route, arrival_threshold_m=50)
    stop0 = route.stops[0]

    session.on_position(LocationFix(near(stop0, 500), timestamp=10.0))
    stale = session.on_position(LocationFix(near(stop0, 10), timestamp=5.0))

    assert stale == []
    assert session.completed == frozenset()


def test_untimestamped_fix_after_device_timestamp_is_applied(route):
    session = WalkSession(route, arrival_threshold_m=50)
    stop0 = route.stops[0]

    session.on_position(LocationFix(near(stop0, 1100), timestamp=1.7e12))
    events = session.on_position(LocationFix(stop0.coordinate))

    assert types(events) == [EventType.PROGRESS, EventType.ARRIVAL]
    # Device timestamps still order against each other
    assert session.on_position(LocationFix(near(stop0, 5), timestamp=1.0)) == []
    assert types(session.on_position(LocationFix(near(stop0, 5), timestamp=1.8e12))) == [EventType.PROGRESS]


def test_navigation_bounds(route):
    session = WalkSession(route)
    assert session.previous() == []
    assert session.current_index == 0

    session.jump_to(3)
    assert session.is_last_stop
    assert session.next() == []
    assert session.current_index == 3

    session.previous()
    assert session.current_index == 2

    with pytest.raises(SessionStateError):
        session.jump_to(4)
    with pytest.raises(SessionStateError):
        session.jump_to(-1)


def test_jump_back_to_completed_stop_does_not_rearrive(route):
    session = WalkSession(route, arrival_threshold_m=50)
    stop0 = route.stops[0]
    session.on_position(near(stop0, 10))
    session.jump_to(2)
    session.jump_to(0)
    events = session.on_position(near(stop0, 10))
    assert EventType.ARRIVAL not in types(events)


def test_finish_requires_last_stop_reached(route):
    session = WalkSession(route, arrival_threshold_m=50)
    with pytest.raises(SessionStateError):
        session.finish()

    session.jump_to(3)
    with pytest.raises(SessionStateError):
        session.finish()

    session.on_position(near(route.stops[3], 5))
    events = session.finish()
    assert types(events) == [EventType.SESSION_ENDED]
    assert session.state.status is SessionStatus.FINISHED
    assert not session.is_complete
    assert session.progress == 0.25


def test_full_walk_is_complete(route):
    session = WalkSession(route, arrival_threshold_m=50)
    for index, stop in enumerate(route.stops):
        session.jump_to(index)
        session.on_position(near(stop, 5))
    assert session.is_complete
    assert session.progress == 1.0
    session.finish()


def test_end_is_terminal_and_cancels_stream(route):
    stream = QueueLocationStream()
    session = WalkSession(route, stream=stream)

    assert types(session.end()) == [EventType.SESSION_ENDED]
    assert stream.cancelled
    assert session.end() == []
    assert session.on_position(near(route.stops[0], 5)) == []
    with pytest.raises(SessionStateError):
        session.next()


def test_signal_loss_is_reported_once_then_restored(route):
    session = WalkSession(route)
    assert types(session.on_signal_lost("timeout")) == [EventType.SIGNAL_LOST]
    assert session.on_signal_lost("timeout") == []
    events = session.on_position(near(route.stops[0], 500))
    assert types(events) == [EventType.SIGNAL_RESTORED, EventType.PROGRESS]


@pytest.mark.asyncio
async def test_apply_command_dispatch(route):
    session = WalkSession(route)
    await session.apply_command("next")
    await session.apply_command("jump", 3)
    assert session.current_index == 3
    with pytest.raises(SessionStateError):
        await session.apply_command("fly")


@pytest.mark.asyncio
async def test_tracker_delivers_events_in_order(route):
    stream = QueueLocationStream()
    session = WalkSession(route, arrival_threshold_m=50)
    received = []

    async def on_event(event):
        received.append(event)

    tracker = WalkTracker(session, stream, on_event=on_event)
    tracker.start()

    stream.publish(LocationFix(near(route.stops[0], 400), timestamp=1.0))
    stream.publish_error("no fix")
    stream.publish(LocationFix(near(route.stops[0], 20), timestamp=2.0))
    stream.publish(LocationFix(near(route.stops[0], 30), timestamp=1.5))
    await asyncio.sleep(0.05)

    await session.apply_command("end")
    await asyncio.wait_for(tracker.stop(), 1)

    assert types(received) == [
        EventType.PROGRESS,
        EventType.SIGNAL_LOST,
        EventType.SIGNAL_RESTORED,
        EventType.PROGRESS,
        EventType.ARRIVAL,
    ]
    assert stream.cancelled


@pytest.mark.asyncio
async def test_no_events_after_session_ends(route):
    stream = QueueLocationStream()
    session = WalkSession(route, arrival_threshold_m=50)
    received = []

    async def on_event(event):
        received.append(event)

    tracker = WalkTracker(session, stream, on_event=on_event)
    task = tracker.start()
    await session.apply_command("end")
    stream.publish(LocationFix(near(route.stops[0], 10)))
    await asyncio.wait_for(task, 1)

    assert received == []
