"""
Integration tests for live walk tracking over WebSocket
"""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import app
from app.models.walk import Coordinate
from tests.fakes import make_route, offset


@pytest.fixture
def client(db_engine):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def route_data():
    return make_route().to_dict()


def near(stop, meters):
    """Point ``meters`` south of a serialized stop."""
    return offset(Coordinate(lat=stop["lat"], lon=stop["lon"]), north_m=-meters)


def position(stop, meters, **extra):
    point = near(stop, meters)
    return {"type": "position", "lat": point.lat, "lon": point.lon, **extra}


def event_types(ws, count):
    return [ws.receive_json()["event"]["type"] for _ in range(count)]


def test_walk_through_to_finish(client, route_data):
    stops = route_data["stops"]
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "route": route_data})
        started = ws.receive_json()
        assert started["type"] == "started"
        assert started["session"]["total_stops"] == 4
        assert started["session"]["current_index"] == 0

        ws.send_json(position(stops[0], 40))
        assert event_types(ws, 2) == ["progress", "arrival"]

        ws.send_json(position(stops[0], 40))
        message = ws.receive_json()
        assert message["event"]["type"] == "progress"
        assert message["session"]["completed"] == [0]

        ws.send_json({"type": "next"})
        changed = ws.receive_json()
        assert changed["event"]["type"] == "stop_changed"
        assert changed["session"]["current_index"] == 1

        ws.send_json({"type": "jump", "index": 3})
        assert ws.receive_json()["session"]["current_index"] == 3

        ws.send_json({"type": "finish"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "INVALID_SESSION_STATE"

        ws.send_json(position(stops[3], 5))
        assert event_types(ws, 2) == ["progress", "arrival"]

        ws.send_json({"type": "finish"})
        ended = ws.receive_json()
        assert ended["event"]["type"] == "session_ended"
        assert ended["session"]["status"] == "finished"

        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()


def test_commands_before_start_are_rejected(client, route_data):
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "next"})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "INVALID_SESSION_STATE"

        ws.send_json({"type": "start", "route": {"stops": []}})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "start", "route": route_data})
        assert ws.receive_json()["type"] == "started"


def test_signal_loss_and_restore(client, route_data):
    stops = route_data["stops"]
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "route": route_data})
        ws.receive_json()

        ws.send_json({"type": "gps_error", "reason": "no fix"})
        lost = ws.receive_json()["event"]
        assert lost["type"] == "signal_lost"
        assert lost["message"] == "no fix"

        ws.send_json(position(stops[0], 500))
        assert event_types(ws, 2) == ["signal_restored", "progress"]

        ws.send_json({"type": "position", "lat": "north", "lon": 13.4})
        assert ws.receive_json()["error_code"] == "VALIDATION_ERROR"

        ws.send_json({"type": "end"})
        assert ws.receive_json()["session"]["status"] == "ended"


def test_stale_positions_are_ignored(client, route_data):
    stops = route_data["stops"]
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "route": route_data})
        ws.receive_json()

        ws.send_json(position(stops[0], 500, timestamp=10))
        assert event_types(ws, 1) == ["progress"]

        ws.send_json(position(stops[0], 5, timestamp=5))
        ws.send_json(position(stops[0], 400, timestamp=11))
        message = ws.receive_json()
        assert message["event"]["type"] == "progress"
        assert message["session"]["completed"] == []


def test_malformed_timestamp_is_rejected_without_closing(client, route_data):
    stops = route_data["stops"]
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "route": route_data})
        ws.receive_json()

        ws.send_json(position(stops[0], 500, timestamp="now"))
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["error_code"] == "VALIDATION_ERROR"
        assert error["details"] == {"timestamp": "now"}

        ws.send_json(position(stops[0], 500, accuracy="high"))
        assert ws.receive_json()["error_code"] == "VALIDATION_ERROR"

        ws.send_json(position(stops[0], 40))
        assert event_types(ws, 2) == ["progress", "arrival"]


def test_positions_without_timestamp_follow_timestamped_ones(client, route_data):
    stops = route_data["stops"]
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "route": route_data})
        ws.receive_json()

        ws.send_json(position(stops[0], 1100, timestamp=1.7e12))
        assert event_types(ws, 1) == ["progress"]

        ws.send_json(position(stops[0], 5))
        assert event_types(ws, 2) == ["progress", "arrival"]


def test_start_from_saved_walk(client, route_data):
    r = client.post("/walks", json={"title": "Saved loop", "route": route_data})
    share_id = r.json()["data"]["share_id"]

    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "share_id": share_id})
        started = ws.receive_json()
        assert started["type"] == "started"
        assert started["session"]["total_stops"] == len(route_data["stops"])

        ws.send_json({"type": "start", "share_id": share_id})
        assert ws.receive_json()["error_code"] == "INVALID_SESSION_STATE"


def test_unknown_share_id(client):
    with client.websocket_connect("/walks/track") as ws:
        ws.send_json({"type": "start", "share_id": "missing"})
        assert ws.receive_json()["error_code"] == "WALK_NOT_FOUND"
