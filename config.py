"""
Application configuration from environment variables.
"""
from typing import Optional
from pydantic_settings import BaseSettings


# AQI estimator output range
AQI_MIN = 10
AQI_MAX = 150

# Pollution level thresholds on exposure score (lower bound of each level)
POLLUTION_LEVEL_THRESHOLDS = {
    "Moderate": 30,
    "High": 50,
    "Very High": 70,
}


class Settings(BaseSettings):
    """Settings loaded from environment (and .env)."""

    # Routing collaborator (Google Routes API; empty key = local mock routes)
    google_maps_api_key: Optional[str] = None
    routes_api_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    routing_travel_mode: str = "DRIVE"
    routing_timeout_s: float = 15.0
    routing_max_retries: int = 2

    # Redis (empty = no cache)
    redis_url: Optional[str] = None

    # Estimator fan-out
    estimator_concurrency: int = 16
    estimator_call_timeout_s: float = 2.0  # per sample point
    pipeline_deadline_s: float = 10.0  # shared by a whole route batch, grid or forecast

    # Route exposure
    route_score_samples: int = 10
    route_series_samples: int = 20
    route_result_cache_ttl: int = 300  # seconds

    # Heatmap
    heatmap_grid_size: int = 20
    forecast_grid_size: int = 15
    forecast_hours: int = 24
    heatmap_cache_ttl: int = 300  # seconds

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
