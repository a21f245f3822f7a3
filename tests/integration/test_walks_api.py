"""
Integration tests for walk generation, saving and sharing endpoints
"""
import pytest
from fastapi.testclient import TestClient

from app.config.settings import RouteSettings
from app.core.dependencies import get_route_builder
from app.core.exceptions import SourceUnavailableError
from app.main import app
from app.services.poi_aggregator import POIAggregator
from app.services.route_builder import RouteBuilder
from tests.fakes import BERLIN, FakeGeocoder, FakePOISource, FakeRoutingSource, offset, raw_poi

MONUMENTS = [
    raw_poi("Neptunbrunnen", offset(BERLIN, north_m=150), historic="fountain"),
    raw_poi("Rotes Rathaus", offset(BERLIN, east_m=300), historic="building"),
    raw_poi("Marienkirche", offset(BERLIN, north_m=-450), building="church", historic="yes"),
]


@pytest.fixture
def make_client(db_engine):
    clients = []

    def factory(poi_source=None):
        builder = RouteBuilder(
            POIAggregator(poi_source or FakePOISource(default=MONUMENTS), config=RouteSettings()),
            routing_source=FakeRoutingSource(),
            geocoder=FakeGeocoder("Mitte, Berlin"),
        )
        app.dependency_overrides[get_route_builder] = lambda: builder
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()


def generate(client, **overrides):
    body = {
        "origin": {"lat": BERLIN.lat, "lon": BERLIN.lon},
        "duration_minutes": 60,
        "interests": ["historic"],
        "vibe": "balanced",
        "pace": "moderate",
    }
    body.update(overrides)
    return client.post("/walks/generate", json=body)


def test_root_and_health(make_client):
    client = make_client()
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"

    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["details"]["database"]["status"] == "healthy"


def test_generate_walk(make_client):
    client = make_client()
    r = generate(client)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"

    route = body["data"]
    assert [s["name"] for s in route["stops"]] == ["Neptunbrunnen", "Rotes Rathaus", "Marienkirche"]
    assert route["origin_label"] == "Mitte, Berlin"
    assert route["polyline_source"] == "routing"
    assert route["polyline"][0] == [BERLIN.lat, BERLIN.lon]
    assert route["preferences"]["interests"] == ["historic"]
    assert route["estimated_minutes"] == pytest.approx(route["total_distance_m"] / 60.0)


def test_generate_without_origin_uses_default(make_client):
    client = make_client()
    r = generate(client, origin=None)
    assert r.status_code == 200
    assert r.json()["data"]["origin"] == {"lat": 52.52, "lon": 13.405}


@pytest.mark.parametrize("overrides", [
    {"duration_minutes": 20},
    {"duration_minutes": 255},
    {"interests": []},
    {"vibe": "rowdy"},
])
def test_generate_rejects_bad_preferences(make_client, overrides):
    client = make_client()
    r = generate(client, **overrides)
    assert r.status_code == 422
    body = r.json()
    assert body["status"] == "error"
    assert body["error_code"] == "VALIDATION_ERROR"


def test_generate_rejects_blank_interests(make_client):
    client = make_client()
    r = generate(client, interests=["  "])
    assert r.status_code == 422
    assert r.json()["error_code"] == "INVALID_PREFERENCES"


def test_generate_with_nothing_nearby(make_client):
    client = make_client(FakePOISource())
    r = generate(client)
    assert r.status_code == 404
    body = r.json()
    assert body["error_code"] == "NO_CANDIDATES"
    assert body["details"]["radius_m"] == 3600


def test_generate_when_source_is_down(make_client):
    client = make_client(FakePOISource(error=SourceUnavailableError("Overpass", "HTTP 504")))
    r = generate(client)
    assert r.status_code == 503
    body = r.json()
    assert body["error_code"] == "SOURCE_UNAVAILABLE"
    assert body["details"]["source"] == "Overpass"


def test_save_and_share_walk(make_client):
    client = make_client()
    route = generate(client).json()["data"]

    r = client.post("/walks", json={"title": "Mitte loop", "description": "Short one", "route": route})
    assert r.status_code == 201
    saved = r.json()["data"]
    assert saved["title"] == "Mitte loop"
    share_id = saved["share_id"]

    r = client.get(f"/walks/{share_id}")
    assert r.status_code == 200
    loaded = r.json()["data"]
    assert loaded["route"]["stops"] == route["stops"]
    assert loaded["route"]["polyline"] == route["polyline"]


def test_unknown_walk_is_not_found(make_client):
    client = make_client()
    r = client.get("/walks/nope")
    assert r.status_code == 404
    assert r.json()["error_code"] == "WALK_NOT_FOUND"
