import pytest

from app.config.settings import RouteSettings, TrackingSettings
from app.core.db import configure_engine
from tests.fakes import BERLIN, make_route


@pytest.fixture
def route_settings():
    return RouteSettings()


@pytest.fixture
def tracking_settings():
    return TrackingSettings()


@pytest.fixture
def origin():
    return BERLIN


@pytest.fixture
def route():
    return make_route()


@pytest.fixture
def db_engine(tmp_path):
    """Module engine bound to a throwaway SQLite file."""
    return configure_engine(f"sqlite+aiosqlite:///{tmp_path / 'walks.db'}")
