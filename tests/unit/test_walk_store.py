"""
Unit tests for saving and loading walks
"""
import pytest

from app.core.db import get_session_factory, init_db
from app.core.exceptions import WalkNotFoundError
from app.services.walk_store import SHARE_ID_LENGTH, WalkStore
from tests.fakes import make_route


@pytest.mark.asyncio
async def test_save_and_load_round_trip(db_engine):
    await init_db(db_engine)
    route = make_route()
    route.origin_label = "Mitte, Berlin"

    async with get_session_factory()() as db:
        store = WalkStore(db)
        walk = await store.save(route, "Evening loop", "Four monuments")

        assert len(walk.share_id) == SHARE_ID_LENGTH
        assert walk.id is not None

    async with get_session_factory()() as db:
        loaded = await WalkStore(db).get(walk.share_id)

    assert loaded == route


@pytest.mark.asyncio
async def test_share_ids_are_unique(db_engine):
    await init_db(db_engine)
    async with get_session_factory()() as db:
        store = WalkStore(db)
        first = await store.save(make_route(), "One")
        second = await store.save(make_route(), "Two")
    assert first.share_id != second.share_id


@pytest.mark.asyncio
async def test_missing_walk_raises(db_engine):
    await init_db(db_engine)
    async with get_session_factory()() as db:
        with pytest.raises(WalkNotFoundError) as exc:
            await WalkStore(db).get("doesnotexist")
    assert exc.value.status_code == 404
