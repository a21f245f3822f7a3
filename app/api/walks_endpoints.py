"""
Walk API endpoints - route generation, saving and sharing
"""
import logging

from fastapi import APIRouter, Depends, status

from app.config.settings import get_settings
from app.core.dependencies import get_route_builder, get_walk_store
from app.schemas.base import Envelope
from app.schemas.walk import (
    GenerateWalkRequest,
    RouteRead,
    SavedWalkRead,
    SaveWalkRequest,
)
from app.services.location_stream import resolve_origin
from app.services.route_builder import RouteBuilder
from app.services.walk_store import WalkStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/walks", tags=["walks"])


@router.post("/generate", response_model=Envelope[RouteRead])
async def generate_walk(
    request: GenerateWalkRequest,
    builder: RouteBuilder = Depends(get_route_builder),
):
    """
    Generate a walking route

    - **origin**: Starting point; the configured default origin when omitted
    - **duration_minutes**: 15 to 240, in steps of 15
    - **interests**: At least one interest tag (e.g. "historic", "parks")
    - **vibe**: quiet, balanced or lively
    - **pace**: slow, moderate or fast
    - **optimize_order**: Visit stops in nearest-neighbour order instead of nearest-first
    """
    prefs = request.to_preferences()
    if request.origin is not None:
        origin = request.origin.to_coordinate()
    else:
        origin = await resolve_origin(None, get_settings().tracking)

    route = await builder.build(origin, prefs, optimize_order=request.optimize_order)
    return Envelope(status="ok", data=RouteRead.from_route(route))


@router.post("", response_model=Envelope[SavedWalkRead], status_code=status.HTTP_201_CREATED)
async def save_walk(
    request: SaveWalkRequest,
    store: WalkStore = Depends(get_walk_store),
):
    """
    Save a generated route and get a share id for it

    - **title**: Display title
    - **description**: Optional notes
    - **route**: The route as returned by /walks/generate
    """
    walk = await store.save(request.route.to_route(), request.title, request.description)
    return Envelope(status="ok", data=SavedWalkRead.from_saved(walk))


@router.get("/{share_id}", response_model=Envelope[SavedWalkRead])
async def get_walk(
    share_id: str,
    store: WalkStore = Depends(get_walk_store),
):
    """Load a saved walk by its share id"""
    walk = await store.get_saved(share_id)
    return Envelope(status="ok", data=SavedWalkRead.from_saved(walk))
