"""
Domain data models for walk generation and live tracking.

These are plain dataclasses shared by the route-generation pipeline and the
walk session state machine. Every model that crosses the persistence or API
boundary can be converted to and from a plain dict.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from app.core.exceptions import InvalidPreferencesError

DEFAULT_CATEGORY = "Point of Interest"
SUMMARY_MAX_CHARS = 150

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 240
DURATION_STEP_MINUTES = 15


class Vibe(str, Enum):
    """Coarse mood filter over POI categories"""
    QUIET = "quiet"
    BALANCED = "balanced"
    LIVELY = "lively"


class Pace(str, Enum):
    """Assumed walking speed class"""
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


class PolylineSource(str, Enum):
    """Where a route's display geometry came from"""
    ROUTING = "routing"
    STRAIGHT_LINE = "straight_line"


@dataclass(frozen=True)
class Coordinate:
    """WGS84 position in degrees"""
    lat: float
    lon: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} outside [-90, 90]")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude {self.lon} outside [-180, 180]")

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Coordinate":
        return cls(lat=float(d["lat"]), lon=float(d["lon"]))


@dataclass
class RawPOI:
    """A POI as returned by the POI source, before validation"""
    id: str
    name: Optional[str]
    coordinate: Optional[Coordinate]
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Enrichment:
    """Optional descriptive content for a place"""
    image_url: Optional[str] = None
    summary: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.image_url and not self.summary


@dataclass
class PointOfInterest:
    """A named stop candidate with its distance from the route origin"""
    id: str
    name: str
    coordinate: Coordinate
    category: str = DEFAULT_CATEGORY
    distance_m: float = 0.0
    image_url: Optional[str] = None
    summary: Optional[str] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Point of interest name must be non-empty")
        if self.distance_m < 0:
            raise ValueError("Distance from origin must be non-negative")
        if not self.category:
            self.category = DEFAULT_CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "distance_m": self.distance_m,
            "image_url": self.image_url,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PointOfInterest":
        return cls(
            id=str(d["id"]),
            name=d["name"],
            coordinate=Coordinate(lat=float(d["lat"]), lon=float(d["lon"])),
            category=d.get("category") or DEFAULT_CATEGORY,
            distance_m=float(d.get("distance_m", 0.0)),
            image_url=d.get("image_url"),
            summary=d.get("summary"),
        )


@dataclass
class RoutePreferences:
    """User choices that drive search radius and POI filtering"""
    duration_minutes: int
    interests: List[str]
    vibe: Vibe = Vibe.BALANCED
    pace: Pace = Pace.MODERATE

    def __post_init__(self):
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise InvalidPreferencesError("duration_minutes", "Duration must be a whole number of minutes")
        if not MIN_DURATION_MINUTES <= self.duration_minutes <= MAX_DURATION_MINUTES:
            raise InvalidPreferencesError(
                "duration_minutes",
                f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
            )
        if self.duration_minutes % DURATION_STEP_MINUTES:
            raise InvalidPreferencesError(
                "duration_minutes",
                f"Duration must be a multiple of {DURATION_STEP_MINUTES} minutes"
            )

        # Set semantics, first-seen order kept so queries are deterministic
        interests = []
        for tag in self.interests:
            tag = tag.strip() if isinstance(tag, str) else ""
            if tag and tag not in interests:
                interests.append(tag)
        if not interests:
            raise InvalidPreferencesError("interests", "Select at least one interest")
        self.interests = interests

        try:
            self.vibe = Vibe(self.vibe)
        except ValueError:
            raise InvalidPreferencesError("vibe", f"Unknown vibe '{self.vibe}'")
        try:
            self.pace = Pace(self.pace)
        except ValueError:
            raise InvalidPreferencesError("pace", f"Unknown pace '{self.pace}'")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_minutes": self.duration_minutes,
            "interests": list(self.interests),
            "vibe": self.vibe.value,
            "pace": self.pace.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RoutePreferences":
        return cls(
            duration_minutes=d["duration_minutes"],
            interests=list(d["interests"]),
            vibe=d.get("vibe", Vibe.BALANCED),
            pace=d.get("pace", Pace.MODERATE),
        )


@dataclass
class Route:
    """An ordered walking itinerary; list order is visiting order"""
    stops: List[PointOfInterest]
    origin: Coordinate
    polyline: List[Coordinate]
    total_distance_m: float
    estimated_minutes: float
    preferences: RoutePreferences
    origin_label: Optional[str] = None
    polyline_source: PolylineSource = PolylineSource.ROUTING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin.to_dict(),
            "origin_label": self.origin_label,
            "stops": [stop.to_dict() for stop in self.stops],
            "polyline": [[c.lat, c.lon] for c in self.polyline],
            "polyline_source": self.polyline_source.value,
            "total_distance_m": self.total_distance_m,
            "estimated_minutes": self.estimated_minutes,
            "preferences": self.preferences.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Route":
        return cls(
            stops=[PointOfInterest.from_dict(s) for s in d["stops"]],
            origin=Coordinate.from_dict(d["origin"]),
            polyline=[Coordinate(lat=float(p[0]), lon=float(p[1])) for p in d.get("polyline", [])],
            total_distance_m=float(d.get("total_distance_m", 0.0)),
            estimated_minutes=float(d.get("estimated_minutes", 0.0)),
            preferences=RoutePreferences.from_dict(d["preferences"]),
            origin_label=d.get("origin_label"),
            polyline_source=PolylineSource(d.get("polyline_source", PolylineSource.ROUTING.value)),
        )


@dataclass(frozen=True)
class LocationFix:
    """
    A single position report from a location stream.

    ``timestamp`` is the reporting device's clock, when it sends one. It only
    orders fixes against other timestamped fixes from the same device.
    """
    coordinate: Coordinate
    timestamp: Optional[float] = None
    accuracy_m: Optional[float] = None
