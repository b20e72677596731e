"""Configuration management."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


class Settings(BaseModel):
    """Application settings."""

    # Mapbox (directions, geocoding and terrain)
    mapbox_token: str | None = Field(
        default_factory=lambda: os.getenv("MAPBOX_TOKEN")
    )
    mapbox_base_url: str = Field(
        default_factory=lambda: os.getenv("MAPBOX_BASE_URL", "https://api.mapbox.com")
    )

    # Storage (optional - routes are written to output_dir without it)
    supabase_url: str | None = Field(
        default_factory=lambda: os.getenv("SUPABASE_URL")
    )
    supabase_key: str | None = Field(
        default_factory=lambda: os.getenv("SUPABASE_KEY")
    )

    geolocation_url: str = Field(
        default_factory=lambda: os.getenv("GEOLOCATION_URL", "https://ipapi.co/json/")
    )

    # Route creation defaults
    default_speed: int = 15
    default_speed_unit: str = "mph"
    elevation_chunk_km: float = 0.1
    geolocation_timeout_s: float = 5.0
    request_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_S", "30"))
    )

    log_level: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING")
    )

    # Output settings
    output_dir: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent / "output"
    )

    def validate_required(self) -> list[str]:
        """Check for missing required configuration."""
        missing = []

        if not self.mapbox_token:
            missing.append("MAPBOX_TOKEN")

        # Supabase is optional, routes fall back to local JSON/GPX files

        return missing


# Global settings instance
settings = Settings()
