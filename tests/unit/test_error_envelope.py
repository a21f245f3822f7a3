from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.error_handlers import ErrorHandler, setup_error_handlers
from app.core.exceptions import (
    LocationUnavailableError,
    NoCandidatesError,
    RouteGenerationError,
)

api = FastAPI()
setup_error_handlers(api)


@api.get("/no-candidates")
async def no_candidates():
    raise RouteGenerationError(NoCandidatesError(1800, ["art"]))


@api.get("/no-location")
async def no_location():
    raise LocationUnavailableError("permission denied")


@api.get("/crash")
async def crash():
    raise RuntimeError("unexpected")


client = TestClient(api, raise_server_exceptions=False)


def test_walk_exception_becomes_envelope():
    r = client.get("/no-candidates")
    assert r.status_code == 404
    body = r.json()
    assert body["status"] == "error"
    assert body["error_code"] == "NO_CANDIDATES"
    assert body["error"].startswith("No places found nearby")
    assert body["details"] == {"radius_m": 1800, "interests": ["art"]}


def test_location_error_keeps_reason():
    r = client.get("/no-location")
    assert r.status_code == 503
    assert r.json()["details"]["reason"] == "permission denied"


def test_unknown_route_and_unhandled_error():
    r = client.get("/missing")
    assert r.status_code == 404
    assert r.json()["error_code"] == "NOT_FOUND"

    r = client.get("/crash")
    assert r.status_code == 500
    assert r.json()["error_code"] == "INTERNAL_SERVER_ERROR"
    assert "unexpected" not in r.json()["error"]


def test_error_statistics_count_codes():
    handler = ErrorHandler()
    for _ in range(3):
        handler._track_error("NO_CANDIDATES")
    stats = handler.get_error_statistics()
    assert stats["error_counts"] == {"NO_CANDIDATES": 3}
    assert stats["total_errors"] == 3
