"""
Configuration loader utility for environment-specific settings.
"""

import logging
import os
from pathlib import Path
from typing import Optional
from .settings import Settings, Environment

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Utility class for loading environment-specific configurations"""

    @staticmethod
    def load_environment_config(environment: Optional[str] = None) -> Settings:
        """
        Load configuration for the specified environment.

        Args:
            environment: Target environment (development, staging, production, testing)
                        If None, uses ENVIRONMENT env var or defaults to development

        Returns:
            Settings instance with environment-specific configuration
        """
        if environment is None:
            environment = os.getenv("ENVIRONMENT", "development")

        env = Environment(environment.lower())
        env_file_path = Path(f".env.{env.value}")

        if env_file_path.exists():
            return Settings(_env_file=str(env_file_path), environment=env)

        logger.warning(
            f"Environment file {env_file_path} not found, using default settings"
        )
        return Settings(environment=env)

    @staticmethod
    def get_available_environments() -> list[str]:
        """Get list of available environment configurations"""
        env_files = []
        for env_file in Path(".").glob(".env.*"):
            if env_file.name.endswith(".sample"):
                continue
            env_files.append(env_file.name.replace(".env.", ""))
        return sorted(env_files)

    @staticmethod
    def create_sample_env_file(environment: str, output_path: Optional[str] = None) -> str:
        """
        Create a sample .env file for the specified environment.

        Args:
            environment: Target environment
            output_path: Optional custom output path

        Returns:
            Path to the created sample file
        """
        env = Environment(environment.lower())

        if output_path is None:
            output_path = f".env.{env.value}.sample"

        defaults = Settings()

        sample_content = f"""# Sample configuration for {env.value} environment
# Copy this file to .env.{env.value} and modify as needed

# Application Configuration
APP_NAME={defaults.app_name}
ENVIRONMENT={env.value}
DEBUG={'true' if env == Environment.DEVELOPMENT else 'false'}
LOG_LEVEL={defaults.log_level.value}
LOG_FORMAT={defaults.log_format}
DATABASE_URL={defaults.database_url}

# Server Configuration
HOST={defaults.host}
PORT={defaults.port}
WORKERS={1 if env == Environment.DEVELOPMENT else 4}

# External services
OVERPASS_URL={defaults.overpass.url}
OVERPASS_TIMEOUT_SECONDS={defaults.overpass.timeout_seconds}
OSRM_BASE_URL={defaults.routing.base_url}
OSRM_TIMEOUT_SECONDS={defaults.routing.timeout_seconds}
WIKIPEDIA_LANGUAGE={defaults.wikipedia.language}
NOMINATIM_URL={defaults.geocoding.url}
UNSPLASH_ACCESS_KEY=

# Route heuristics
ROUTE_RADIUS_CAP_M={defaults.route.radius_cap_m}
ROUTE_MIN_VIABLE_CANDIDATES={defaults.route.min_viable_candidates}
ROUTE_QUIET_CAP={defaults.route.quiet_cap}
ROUTE_BALANCED_CAP={defaults.route.balanced_cap}
ROUTE_LIVELY_CAP={defaults.route.lively_cap}
ROUTE_ENRICHMENT_LIMIT={defaults.route.enrichment_limit}

# Tracking
TRACKING_ARRIVAL_THRESHOLD_M={defaults.tracking.arrival_threshold_m}
TRACKING_DEFAULT_ORIGIN_LAT={defaults.tracking.default_origin_lat}
TRACKING_DEFAULT_ORIGIN_LON={defaults.tracking.default_origin_lon}
"""

        with open(output_path, "w") as f:
            f.write(sample_content)

        return output_path


def load_config_for_environment(environment: Optional[str] = None) -> Settings:
    """Convenience function to load configuration for an environment"""
    return ConfigLoader.load_environment_config(environment)
