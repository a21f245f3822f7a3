"""
Configuration management system using Pydantic Settings.
Supports environment-based configuration for different deployment environments.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Optional, Dict, Any, List
from enum import Enum


class Environment(str, Enum):
    """Supported deployment environments"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OverpassSettings(BaseSettings):
    """OpenStreetMap Overpass API configuration"""

    url: str = Field(default="https://overpass-api.de/api/interpreter")
    timeout_seconds: int = Field(default=30, ge=5, le=180)

    model_config = {"env_prefix": "OVERPASS_", "extra": "ignore"}


class RoutingSettings(BaseSettings):
    """OSRM walking route configuration"""

    base_url: str = Field(default="https://router.project-osrm.org")
    profile: str = Field(default="foot")
    timeout_seconds: int = Field(default=20, ge=1, le=120)

    model_config = {"env_prefix": "OSRM_", "extra": "ignore"}


class WikipediaSettings(BaseSettings):
    """Wikipedia enrichment configuration"""

    language: str = Field(default="en", min_length=2, max_length=10)
    search_radius_m: int = Field(default=200, ge=10, le=10000)
    timeout_seconds: int = Field(default=8, ge=1, le=60)
    summary_max_chars: int = Field(default=150, ge=20, le=1000)
    user_agent: str = Field(default="vibe-walks/1.0 (walking route generator)")

    @property
    def api_url(self) -> str:
        """MediaWiki action API endpoint for the configured language"""
        return f"https://{self.language}.wikipedia.org/w/api.php"

    model_config = {"env_prefix": "WIKIPEDIA_", "extra": "ignore"}


class UnsplashSettings(BaseSettings):
    """Unsplash API configuration"""

    access_key: Optional[str] = Field(
        default=None,
        description="Unsplash API access key (Client-ID)"
    )
    api_url: str = Field(default="https://api.unsplash.com")
    timeout_seconds: int = Field(default=10, ge=1, le=60)
    cache_ttl_seconds: int = Field(default=3600, ge=60, le=86400)

    model_config = {
        "env_prefix": "UNSPLASH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


class GeocodingSettings(BaseSettings):
    """Nominatim reverse geocoding configuration"""

    url: str = Field(default="https://nominatim.openstreetmap.org")
    user_agent: str = Field(default="vibe-walks/1.0 (walking route generator)")
    timeout_seconds: int = Field(default=10, ge=1, le=60)
    default_label: str = Field(default="Your location")

    model_config = {"env_prefix": "NOMINATIM_", "extra": "ignore"}


class RouteSettings(BaseSettings):
    """Route generation heuristics (pace, radius and vibe limits)"""

    slow_m_per_min: float = Field(default=40.0, gt=0)
    moderate_m_per_min: float = Field(default=60.0, gt=0)
    fast_m_per_min: float = Field(default=80.0, gt=0)
    radius_cap_m: float = Field(default=10000.0, gt=0)

    min_viable_candidates: int = Field(default=5, ge=1, le=50)
    quiet_cap: int = Field(default=12, ge=1, le=100)
    balanced_cap: int = Field(default=10, ge=1, le=100)
    lively_cap: int = Field(default=15, ge=1, le=100)

    enrichment_limit: int = Field(default=10, ge=0, le=50)
    enrichment_timeout_seconds: float = Field(default=10.0, gt=0, le=60)
    poi_timeout_seconds: float = Field(default=45.0, gt=0, le=300)

    @field_validator('fast_m_per_min')
    @classmethod
    def validate_pace_order(cls, v, info):
        """Pace constants must increase from slow to fast"""
        slow = info.data.get('slow_m_per_min')
        moderate = info.data.get('moderate_m_per_min')
        if slow is not None and moderate is not None and not slow <= moderate <= v:
            raise ValueError("pace constants must satisfy slow <= moderate <= fast")
        return v

    model_config = {"env_prefix": "ROUTE_", "extra": "ignore"}


class TrackingSettings(BaseSettings):
    """Live walk tracking configuration"""

    arrival_threshold_m: float = Field(default=50.0, gt=0)
    location_timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    default_origin_lat: Optional[float] = Field(default=52.5200, ge=-90, le=90)
    default_origin_lon: Optional[float] = Field(default=13.4050, ge=-180, le=180)

    model_config = {"env_prefix": "TRACKING_", "extra": "ignore"}


class SecuritySettings(BaseSettings):
    """CORS configuration"""

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(
        default_factory=lambda: ["GET", "POST"]
    )
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from environment variable or list"""
        if isinstance(v, str):
            origin_list = v.split(",")
            return [origin.strip() for origin in origin_list if origin.strip()]
        return v or ["*"]

    model_config = {"env_prefix": "SECURITY_", "extra": "ignore"}


class Settings(BaseSettings):
    """Main application settings"""

    # Application Configuration
    app_name: str = Field(default="Vibe Walks Backend")
    app_version: str = Field(default="1.0.0")
    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)
    workers: int = Field(default=1, ge=1, le=16)

    # Logging Configuration
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="json")

    # Storage Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./walks.db")

    # Nested Settings
    overpass: OverpassSettings = Field(default_factory=OverpassSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    wikipedia: WikipediaSettings = Field(default_factory=WikipediaSettings)
    unsplash: UnsplashSettings = Field(default_factory=UnsplashSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    route: RouteSettings = Field(default_factory=RouteSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator('environment', mode='before')
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment setting"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT

    def get_cors_config(self) -> Dict[str, Any]:
        """Get CORS configuration for FastAPI"""
        return {
            "allow_origins": self.security.cors_origins,
            "allow_credentials": self.security.cors_allow_credentials,
            "allow_methods": self.security.cors_allow_methods,
            "allow_headers": self.security.cors_allow_headers,
        }

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance"""
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment and files"""
    global settings
    settings = Settings()
    return settings
