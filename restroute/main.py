# -*- coding: utf-8 -*-
"""Location: ./restroute/main.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

restroute - Main FastAPI Application.

This module builds the FastAPI application that serves a populated
``VersionRegistry``. Application code registers its versions, routes and
middleware in a ``setup`` callable; the factory then mounts everything.

Core Functions:
- create_app() -> FastAPI: Creates configured FastAPI application instance
- configure_middleware(app, registry) -> None: Sets up API discovery
- configure_routes(app, registry, pipeline) -> None: Mounts versioned routes
- configure_health_endpoints(app, registry) -> None: Adds health check endpoint
- lifespan(app) -> AsyncIterator[None]: Manages logging lifecycle

Usage:
    from restroute.main import create_app

    def setup(registry):
        registry.get("v1", "widgets", list_widgets)

    app = create_app(setup=setup)
"""

# Standard
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

# Third-Party
from fastapi import FastAPI

# First-Party
from restroute import __version__
from restroute.config import settings
from restroute.dependencies import get_logging_service, get_pipeline, get_registry
from restroute.manifest import load_manifest
from restroute.middleware.api_discovery import ApiDiscoveryMiddleware
from restroute.pipeline import RequestPipeline
from restroute.registry import VersionRegistry
from restroute.server import register_all_routes

# Initialize logging service first
logging_service = get_logging_service()
logger = logging_service.get_logger("main")


####################
# Startup/Shutdown #
####################
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Manage the application's startup and shutdown lifecycle.

    Args:
        _app (FastAPI): FastAPI app

    Yields:
        None
    """
    await logging_service.initialize()
    logger.info(f"Starting {settings.app_name} {__version__}")
    try:
        yield
    finally:
        logger.info("Shutting down")
        await logging_service.shutdown()


def create_app(
    registry: Optional[VersionRegistry] = None,
    pipeline: Optional[RequestPipeline] = None,
    setup: Optional[Callable[[VersionRegistry], None]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        registry: Registry to serve; the process singleton when omitted
        pipeline: Dispatch pipeline; built for ``registry`` when omitted
        setup: Registers application versions, routes and middleware

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    if registry is None:
        registry = get_registry()
        pipeline = pipeline or get_pipeline()
    pipeline = pipeline or RequestPipeline(registry)

    if settings.version_manifest:
        load_manifest(registry, settings.version_manifest)

    if setup is not None:
        setup(registry)

    fastapi_app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Versioned REST API",
        lifespan=lifespan,
    )

    configure_middleware(fastapi_app, registry)
    configure_routes(fastapi_app, registry, pipeline)
    configure_health_endpoints(fastapi_app, registry)

    return fastapi_app


def configure_middleware(fastapi_app: FastAPI, registry: VersionRegistry) -> None:
    """Configure application middleware stack.

    Args:
        fastapi_app: FastAPI application instance to configure
        registry: Registry advertised by API discovery
    """
    if settings.enable_api_discovery:
        fastapi_app.add_middleware(ApiDiscoveryMiddleware, registry=registry)


def configure_routes(fastapi_app: FastAPI, registry: VersionRegistry, pipeline: RequestPipeline) -> None:
    """Mount every registered API route.

    Args:
        fastapi_app: FastAPI application instance to configure
        registry: Populated registry
        pipeline: Dispatch pipeline
    """
    register_all_routes(fastapi_app, registry, pipeline)


def configure_health_endpoints(fastapi_app: FastAPI, registry: VersionRegistry) -> None:
    """Add the health check endpoint.

    Args:
        fastapi_app: FastAPI application instance to configure
        registry: Registry reported by the endpoint
    """

    @fastapi_app.get("/health")
    async def healthcheck():
        """
        Perform a basic health check.

        Returns:
            Dict: Status and the API versions being served
        """
        return {
            "status": "healthy",
            "versions": registry.get_available_versions(),
            "active_versions": registry.get_available_versions(include_deprecated=False),
        }


app = create_app()
