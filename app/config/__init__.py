"""
Configuration package for the Vibe Walks backend.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    OverpassSettings,
    RoutingSettings,
    WikipediaSettings,
    UnsplashSettings,
    GeocodingSettings,
    RouteSettings,
    TrackingSettings,
    SecuritySettings,
    settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "Environment",
    "LogLevel",
    "OverpassSettings",
    "RoutingSettings",
    "WikipediaSettings",
    "UnsplashSettings",
    "GeocodingSettings",
    "RouteSettings",
    "TrackingSettings",
    "SecuritySettings",
    "settings",
    "get_settings",
    "reload_settings",
]
