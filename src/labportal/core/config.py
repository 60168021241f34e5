"""
Application configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    app_name: str = Field(default="LabPortal", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ==========================================================================
    # Measurement Table Layout
    # ==========================================================================
    variable_column: str = Field(
        default="Variable", description="Name of the column holding variable names"
    )
    metadata_columns: list[str] = Field(
        default=["id", "Variable", "Data Source", "Method", "Unit", "LOQ"],
        description="Columns that never hold sampling-date values",
    )

    @field_validator("metadata_columns", mode="before")
    @classmethod
    def parse_metadata_columns(cls, v: Any) -> list[str]:
        """Parse metadata columns from comma-separated string."""
        if isinstance(v, str):
            return [column.strip() for column in v.split(",") if column.strip()]
        return v

    # ==========================================================================
    # Formula Engine
    # ==========================================================================
    comparison_epsilon: float = Field(
        default=1e-10, gt=0, description="Tolerance under which two compared values are equal"
    )
    default_highlight_color: str = Field(
        default="#ffeb3b", description="Color used when no formula color can be parsed"
    )
    error_highlight_color: str = Field(
        default="#ff6b6b", description="Color used to flag formulas that failed to parse"
    )
    formula_column_workers: int = Field(
        default=1, ge=1, le=32, description="Threads used to evaluate value columns"
    )

    @field_validator("default_highlight_color", "error_highlight_color")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        """Ensure fallback colors are #rrggbb hex strings."""
        value = v.strip().lower()
        digits = value.lstrip("#")
        if len(digits) != 6 or any(c not in "0123456789abcdef" for c in digits):
            raise ValueError(f"Color must be a #rrggbb hex string, got '{v}'")
        return f"#{digits}"

    # ==========================================================================
    # Request Limits
    # ==========================================================================
    max_table_rows: int = Field(default=5000, description="Max rows accepted per evaluation")
    max_table_columns: int = Field(
        default=500, description="Max columns accepted per evaluation"
    )
    max_formulas: int = Field(default=200, description="Max formulas accepted per evaluation")

    # ==========================================================================
    # Monitoring
    # ==========================================================================
    prometheus_enabled: bool = Field(default=True, description="Expose Prometheus metrics")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
