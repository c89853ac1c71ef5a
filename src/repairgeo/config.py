"""Application configuration and settings management."""

from pathlib import Path
from typing import Annotated, Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="REPAIRGEO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Repair Dispatch Geolocation API"
    api_prefix: str = "/api"
    service_areas_file: Path = Field(
        default=Path("data/service_areas.csv"),
        description="Service areas used when the database is not configured (.csv or .xlsx).",
    )
    technicians_file: Path = Field(
        default=Path("data/technicians.csv"),
        description="Technician directory used when the database is not configured.",
    )
    geocoder_enabled: bool = Field(
        default=True,
        description="When disabled, reverse geocoding always returns the local fallback record.",
    )
    geocoder_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL for the Nominatim-compatible reverse geocoding service.",
    )
    # Nominatim usage policy requires an identifying User-Agent
    geocoder_user_agent: str = Field(default="RepairGeo/1.0 (ops@repairgeo.example)")
    geocoder_timeout_seconds: float = Field(default=5.0, gt=0.0)
    geocoder_connect_timeout_seconds: float = Field(default=3.0, gt=0.0)
    default_search_radius_km: float = Field(default=25.0, gt=0.0)
    # NoDecode hands the raw env string to _parse_str_tuple_from_env
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("service_areas_file", "technicians_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("geocoder_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
