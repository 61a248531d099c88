"""API discovery middleware for restroute.

Advertises the default API namespace on every response through a ``Link``
header so clients can find the versioned API index.
"""

# Third-Party
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# First-Party
from restroute.config import settings
from restroute.registry import VersionRegistry
from restroute.services.logging_service import LoggingService
from restroute.utils.url_utils import get_base_url, rest_url

# Initialize logging service first
logging_service = LoggingService()
logger = logging_service.get_logger("api discovery")

DISCOVERY_REL = "service-desc"


def discovery_link(base_url: str, registry: VersionRegistry) -> str:
    """Build the discovery ``Link`` header value.

    Args:
        base_url: Site URL the client used
        registry: Registry providing the default namespace

    Returns:
        str: Header value

    Examples:
        >>> discovery_link("https://example.com", VersionRegistry(base_namespace="shop", default_version="v2"))
        '<https://example.com/api/shop/v2>; rel="service-desc"'
    """
    url = rest_url(base_url, settings.rest_prefix, registry.get_full_namespace(registry.default_version))
    return f'<{url}>; rel="{DISCOVERY_REL}"'


class ApiDiscoveryMiddleware(BaseHTTPMiddleware):
    """Middleware adding an API discovery link to responses."""

    def __init__(self, app, registry: VersionRegistry, enabled: bool = True):
        """Initialize API discovery middleware.

        Args:
            app: FastAPI application
            registry: Registry whose default version is advertised
            enabled: Whether the header is added
        """
        super().__init__(app)
        self.registry = registry
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        """Process request and add the discovery link.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware or endpoint handler

        Returns:
            Response with a ``Link`` header when enabled
        """
        response: Response = await call_next(request)

        if self.enabled and "link" not in response.headers:
            response.headers["Link"] = discovery_link(get_base_url(request), self.registry)

        return response
