"""
Walk schemas for API requests/responses
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.walk import (
    Coordinate,
    MAX_DURATION_MINUTES,
    MIN_DURATION_MINUTES,
    DURATION_STEP_MINUTES,
    Pace,
    PolylineSource,
    Route,
    RoutePreferences,
    Vibe,
)


class CoordinateSchema(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)


class PreferencesSchema(BaseModel):
    """Route preferences as sent by the client"""
    duration_minutes: int = Field(
        ...,
        ge=MIN_DURATION_MINUTES,
        le=MAX_DURATION_MINUTES,
        multiple_of=DURATION_STEP_MINUTES,
    )
    interests: list[str] = Field(..., min_length=1)
    vibe: Vibe = Vibe.BALANCED
    pace: Pace = Pace.MODERATE

    def to_preferences(self) -> RoutePreferences:
        return RoutePreferences(
            duration_minutes=self.duration_minutes,
            interests=list(self.interests),
            vibe=self.vibe,
            pace=self.pace,
        )


class GenerateWalkRequest(PreferencesSchema):
    """Schema for generating a walk; origin falls back to the configured default"""
    origin: Optional[CoordinateSchema] = None
    optimize_order: bool = False


class PointOfInterestRead(BaseModel):
    id: str
    name: str
    category: str
    lat: float
    lon: float
    distance_m: float
    image_url: Optional[str] = None
    summary: Optional[str] = None


class RouteRead(BaseModel):
    """Schema for a generated route; polyline points are [lat, lon] pairs"""
    origin: CoordinateSchema
    origin_label: Optional[str] = None
    stops: list[PointOfInterestRead]
    polyline: list[tuple[float, float]]
    polyline_source: PolylineSource = PolylineSource.ROUTING
    total_distance_m: float
    estimated_minutes: float
    preferences: PreferencesSchema

    @classmethod
    def from_route(cls, route: Route) -> "RouteRead":
        return cls.model_validate(route.to_dict())

    def to_route(self) -> Route:
        return Route.from_dict(self.model_dump(mode="json"))


class SaveWalkRequest(BaseModel):
    """Schema for saving a generated route"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    route: RouteRead


class SavedWalkRead(BaseModel):
    """Schema for a stored walk"""
    model_config = ConfigDict(from_attributes=True)

    share_id: str
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    route: RouteRead

    @classmethod
    def from_saved(cls, walk: Any) -> "SavedWalkRead":
        return cls(
            share_id=walk.share_id,
            title=walk.title,
            description=walk.description,
            created_at=walk.created_at,
            route=RouteRead.model_validate(walk.route_data),
        )
