"""API v1 routes."""

from fastapi import APIRouter

from labportal.api.v1 import formulas, health, metrics

router = APIRouter()

# Include all v1 routes
router.include_router(health.router, tags=["health"])
router.include_router(metrics.router, tags=["metrics"])
router.include_router(formulas.router, prefix="/formulas", tags=["formulas"])

__all__ = ["router"]
