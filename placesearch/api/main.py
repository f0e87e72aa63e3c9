"""
FastAPI Main Application
Entry point for the Place Search API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from ..config import get_settings
from ..container import SearchServices
from .errors import setup_error_handlers
from .middleware import RequestLoggingMiddleware, RequestTimingMiddleware
from .routers import admin_router, health_router, places_router, webhooks_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds the service container (unless one was injected), prepares both
    indexes and closes every client on shutdown. A configuration error
    aborts startup.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name}...")

    services: Optional[SearchServices] = getattr(app.state, "services", None)
    if services is None:
        services = SearchServices.from_settings(settings)
        app.state.services = services

    await services.startup()
    logger.info(f"{settings.app_name} started successfully")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await services.aclose()


def create_app(services: Optional[SearchServices] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        services: Pre-built service container (tests); built at startup otherwise

    Returns:
        Configured FastAPI application instance
    """
    settings = services.settings if services is not None else get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    setup_error_handlers(app)

    app.include_router(health_router)
    app.include_router(places_router)
    app.include_router(admin_router)
    app.include_router(webhooks_router)

    @app.get("/")
    async def root():
        """API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": settings.description,
            "endpoints": {
                "search": "/api/v1/places/search",
                "nearby": "/api/v1/places/nearby",
                "health": "/health",
                "status": "/status",
                "metrics": "/metrics",
                "docs": "/docs",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "placesearch.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
