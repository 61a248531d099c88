"""Dependency injection for restroute.

Provides the process-wide registry, pipeline and logging service using a
factory pattern, so the transport and application code share one instance.
"""

# First-Party
from restroute.config import settings
from restroute.pipeline import RequestPipeline
from restroute.registry import VersionRegistry
from restroute.services.logging_service import LoggingService

# Singleton instances
_services = {}


def get_logging_service() -> LoggingService:
    """Get singleton logging service.

    Returns:
        LoggingService: Singleton logging service instance
    """
    if "logging" not in _services:
        _services["logging"] = LoggingService()
    return _services["logging"]


def get_registry() -> VersionRegistry:
    """Get singleton version registry, initialized from settings.

    Returns:
        VersionRegistry: Singleton registry instance
    """
    if "registry" not in _services:
        registry = VersionRegistry()
        registry.init(settings.base_namespace, settings.supported_versions, settings.default_version)
        _services["registry"] = registry
    return _services["registry"]


def get_pipeline() -> RequestPipeline:
    """Get singleton request pipeline bound to the singleton registry.

    Returns:
        RequestPipeline: Singleton pipeline instance
    """
    if "pipeline" not in _services:
        _services["pipeline"] = RequestPipeline(get_registry())
    return _services["pipeline"]


def reset_services() -> None:
    """Drop every singleton; the next getter call builds fresh ones."""
    _services.clear()
