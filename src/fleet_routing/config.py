"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEET_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Fleet Route Optimization API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for run outputs.")
    city_registry_file: Optional[Path] = Field(
        default=None,
        description="Optional workbook with extra cities (City, Latitude, Longitude columns).",
    )
    osrm_base_url: str = Field(
        default="https://router.project-osrm.org/route/v1",
        description="Base URL of the OSRM route service, up to and excluding the profile segment.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing routes.",
    )
    osrm_timeout_seconds: float = Field(default=5.0, gt=0.0)
    route_cache_max_entries: int = Field(default=512, ge=1)
    batch_size: int = Field(default=3, ge=1)
    batch_pause_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Time for the provider rate limiter to refill one full batch of requests.",
    )
    optimization_base: float = Field(default=0.12, ge=0.0, le=1.0)
    optimization_range: float = Field(default=0.08, ge=0.0, le=1.0)
    min_optimized_duration_min: int = Field(default=25, ge=0)
    default_origin_city: str = "Casablanca"
    default_destination_city: str = "Marrakech"
    unknown_city_policy: Literal["abort", "skip"] = "abort"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", "city_registry_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any, info: ValidationInfo) -> Path | None:
        if value is None or value == "":
            # An unset data root falls back to the default directory.
            return Path("data").resolve() if info.field_name == "data_root" else None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("osrm_base_url", mode="after")
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
