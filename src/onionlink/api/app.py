"""
FastAPI Application Factory.

Creates and configures the FastAPI application.
"""

import os
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.logging import get_logger
from ..errors import RegistryInconsistencyError
from ..schemas.common import ErrorResponse
from ..services.connectivity import ConnectivityService
from .endpoints import apps, bridges, events, health, server


logger = get_logger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.

    Set ONIONLINK_CORS_ORIGINS as comma-separated list of origins.
    Example: ONIONLINK_CORS_ORIGINS=http://localhost:3000

    Returns empty list if not configured (CORS disabled).
    """
    origins_str = os.getenv("ONIONLINK_CORS_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


async def _registry_inconsistency_handler(request: Request, exc: RegistryInconsistencyError) -> JSONResponse:
    """Report a registry inconsistency without taking the server down."""
    body = ErrorResponse(
        error="registry_inconsistency",
        message="Connection state is inconsistent; see diagnostics",
        details={"app_id": exc.app_id},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(),
    )


def create_app(
    service: Optional[ConnectivityService] = None,
    title: str = "Onionlink API",
    version: str = __version__,
    description: str = "Bridge configuration and circuit tracking for a Tor-over-VPN client",
    enable_cors: bool = True
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Connectivity service to expose (a new empty one if omitted)
        title: API title
        version: API version
        description: API description
        enable_cors: Enable CORS middleware

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=title,
        version=version,
        description=description,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.service = service if service is not None else ConnectivityService()

    # CORS middleware - only enabled if origins are configured
    cors_origins = _get_cors_origins()
    if enable_cors and cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["X-API-Key", "Content-Type"],
        )

    app.add_exception_handler(RegistryInconsistencyError, _registry_inconsistency_handler)

    # Include routers
    app.include_router(health.router, prefix="/api")
    app.include_router(bridges.router, prefix="/api")
    app.include_router(apps.router, prefix="/api")
    app.include_router(events.router, prefix="/api")
    app.include_router(server.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": title,
            "version": version,
            "docs": "/api/docs",
            "health": "/api/health"
        }

    return app


def run_server(
    service: Optional[ConnectivityService] = None,
    host: str = "127.0.0.1",
    port: int = 8080,
) -> None:
    """
    Run the API server.

    Args:
        service: Connectivity service to expose
        host: Server host address
        port: Server port
    """
    import uvicorn

    logger.info("Starting API server", host=host, port=port)
    uvicorn.run(create_app(service), host=host, port=port)
