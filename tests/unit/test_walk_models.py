"""
Unit tests for walk domain models
"""
import pytest

from app.core.exceptions import InvalidPreferencesError
from app.models.walk import (
    Coordinate,
    DEFAULT_CATEGORY,
    Pace,
    PointOfInterest,
    PolylineSource,
    Route,
    RoutePreferences,
    Vibe,
)
from tests.fakes import make_route


def test_coordinate_rejects_out_of_range():
    with pytest.raises(ValueError):
        Coordinate(lat=90.5, lon=0)
    with pytest.raises(ValueError):
        Coordinate(lat=0, lon=-180.1)


def test_poi_requires_name_and_defaults_category():
    with pytest.raises(ValueError):
        PointOfInterest(id="n/1", name="  ", coordinate=Coordinate(lat=0, lon=0))
    poi = PointOfInterest(id="n/1", name="Fountain", coordinate=Coordinate(lat=0, lon=0), category="")
    assert poi.category == DEFAULT_CATEGORY


def test_preferences_defaults_and_coercion():
    prefs = RoutePreferences(duration_minutes=60, interests=["historic"], vibe="quiet", pace="fast")
    assert prefs.vibe is Vibe.QUIET
    assert prefs.pace is Pace.FAST

    prefs = RoutePreferences(duration_minutes=15, interests=["parks"])
    assert prefs.vibe is Vibe.BALANCED
    assert prefs.pace is Pace.MODERATE


def test_preferences_interests_are_deduplicated_in_order():
    prefs = RoutePreferences(duration_minutes=30, interests=["parks", "historic", "parks", " ", "art"])
    assert prefs.interests == ["parks", "historic", "art"]


@pytest.mark.parametrize("duration", [0, 10, 20, 255, 300, 45.0, True])
def test_preferences_reject_bad_durations(duration):
    with pytest.raises(InvalidPreferencesError) as exc:
        RoutePreferences(duration_minutes=duration, interests=["historic"])
    assert exc.value.details["field"] == "duration_minutes"


def test_preferences_reject_empty_interests_and_unknown_vibe():
    with pytest.raises(InvalidPreferencesError):
        RoutePreferences(duration_minutes=60, interests=[])
    with pytest.raises(InvalidPreferencesError) as exc:
        RoutePreferences(duration_minutes=60, interests=["art"], vibe="rowdy")
    assert exc.value.details["field"] == "vibe"


def test_route_dict_round_trip():
    route = make_route()
    route.origin_label = "Mitte, Berlin"
    route.polyline_source = PolylineSource.STRAIGHT_LINE

    data = route.to_dict()
    assert data["polyline"][0] == [route.origin.lat, route.origin.lon]
    assert data["stops"][0]["lat"] == route.stops[0].coordinate.lat

    restored = Route.from_dict(data)
    assert restored == route
