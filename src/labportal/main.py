"""
ASGI entry point for the lab portal formula service.

``create_app`` wires the shared parsed-formula cache, the middleware stack
and the v1 routes; ``app`` is the instance uvicorn serves.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from labportal.api.v1 import router as v1_router
from labportal.core.config import settings
from labportal.core.exceptions import LabPortalException
from labportal.core.logging import get_logger, setup_logging
from labportal.formula.cache import FormulaCache
from labportal.middleware.prometheus_middleware import PrometheusMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log the formula engine settings on startup and cache usage on shutdown."""
    logger.info(
        "Formula service starting",
        extra={
            "version": settings.app_version,
            "environment": settings.environment,
            "variable_column": settings.variable_column,
            "comparison_epsilon": settings.comparison_epsilon,
            "column_workers": settings.formula_column_workers,
        },
    )

    yield

    cache: FormulaCache = app.state.formula_cache
    logger.info("Formula service stopping", extra={"formula_cache": cache.stats()})
    cache.clear()


def create_app() -> FastAPI:
    """Build the application with its own formula cache."""
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.environment == "production",
    )

    app = FastAPI(
        title=settings.app_name,
        description="Formula evaluation and cell highlighting for lab measurement tables",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.formula_cache = FormulaCache()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.prometheus_enabled:
        app.add_middleware(
            PrometheusMiddleware,
            skip_paths=[f"{settings.api_v1_prefix}/metrics"],
        )

    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.api_v1_prefix)
    return app


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain, request-body and unexpected errors onto the ``{"error": ...}`` envelope."""

    @app.exception_handler(LabPortalException)
    async def labportal_exception_handler(
        request: Request,
        exc: LabPortalException,
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        fields = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return _error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            {"errors": fields},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        message = (
            "An unexpected error occurred" if settings.environment == "production" else str(exc)
        )
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message)


app = create_app()


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Service name and version."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs" if settings.debug else None,
    }
