"""
Dependency Injection
FastAPI dependencies resolving the process-wide search services.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from ..config import Settings
from ..container import SearchServices
from ..ml.search import SearchService
from ..sync import SyncOrchestrator
from .errors import APIError

logger = logging.getLogger(__name__)


def get_services(request: Request) -> SearchServices:
    """
    Container created by the application lifespan.

    Use as FastAPI dependency:
        @app.get("/endpoint")
        def endpoint(services: SearchServices = Depends(get_services)):
            ...
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise APIError(
            "Search services are not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return services


def get_app_settings(services: SearchServices = Depends(get_services)) -> Settings:
    return services.settings


def get_search_service(services: SearchServices = Depends(get_services)) -> SearchService:
    return services.search


def get_orchestrator(services: SearchServices = Depends(get_services)) -> SyncOrchestrator:
    return services.orchestrator


def verify_api_key(
    settings: Settings = Depends(get_app_settings), x_api_key: Optional[str] = Header(None)
) -> bool:
    """
    Verify API key if required.

    Use as FastAPI dependency:
        @app.get("/endpoint")
        def endpoint(authorized: bool = Depends(verify_api_key)):
            ...
    """
    if not settings.require_api_key:
        return True

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if x_api_key not in settings.api_keys:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return True


def get_request_id(request: Request, x_request_id: Optional[str] = Header(None)) -> str:
    """Request ID set by the logging middleware, the client header, or a fresh UUID."""
    return getattr(request.state, "request_id", None) or x_request_id or str(uuid.uuid4())
