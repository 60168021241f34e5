"""
Health check endpoints.

Provides endpoints for monitoring application health.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from labportal.core.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    environment: str
    version: str


class LivenessResponse(BaseModel):
    """Liveness check response model."""

    status: str


class InfoResponse(BaseModel):
    """Application information response model."""

    name: str
    version: str
    environment: str
    formula_engine: dict[str, object] = Field(
        ..., description="Non-sensitive formula engine configuration"
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns application status without checking dependencies.
    Used by load balancers for basic health monitoring.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        version=settings.app_version,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness_check() -> LivenessResponse:
    """
    Liveness check endpoint.

    Simple check to verify the application is running.
    """
    return LivenessResponse(status="alive")


@router.get("/info", response_model=InfoResponse)
async def app_info(request: Request) -> InfoResponse:
    """
    Application information endpoint.

    Returns non-sensitive configuration information.
    """
    cache = request.app.state.formula_cache
    return InfoResponse(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        formula_engine={
            "variable_column": settings.variable_column,
            "metadata_columns": settings.metadata_columns,
            "comparison_epsilon": settings.comparison_epsilon,
            "column_workers": settings.formula_column_workers,
            "cached_formulas": len(cache),
        },
    )
