"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DZ_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Zone API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for static data files.")
    coverage_file: Path = Field(
        default=Path("data/coverage.json"),
        description="Seed file with areas, delivery zones and menu items.",
    )

    # Operating region (defaults to the extent of Pakistan)
    region_min_lat: float = Field(default=23.5, ge=-90.0, le=90.0)
    region_max_lat: float = Field(default=37.5, ge=-90.0, le=90.0)
    region_min_lng: float = Field(default=60.0, ge=-180.0, le=180.0)
    region_max_lng: float = Field(default=78.0, ge=-180.0, le=180.0)

    fallback_center_lat: float = Field(
        default=31.5204,
        ge=-90.0,
        le=90.0,
        description="Center returned for an empty ring (Lahore).",
    )
    fallback_center_lng: float = Field(default=74.3587, ge=-180.0, le=180.0)
    km_per_degree: float = Field(
        default=111.0,
        gt=0.0,
        description="Degrees-to-km multiplier used by the planar area approximation.",
    )
    currency_minor_digits: int = Field(
        default=0,
        ge=0,
        le=4,
        description="Decimal places fees are rounded to (0 = whole rupees).",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
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

    @field_validator("data_root", "coverage_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

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

    @model_validator(mode="after")
    def _check_region(self) -> "Settings":
        if self.region_min_lat >= self.region_max_lat:
            raise ValueError("region_min_lat must be below region_max_lat")
        if self.region_min_lng >= self.region_max_lng:
            raise ValueError("region_min_lng must be below region_max_lng")
        return self


settings = Settings()
