# -*- coding: utf-8 -*-
"""Location: ./restroute/pipeline.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Request Pipeline.

Every request dispatched by the transport runs through the same steps, in
this order, each of which may end the request:

1. route metadata resolution
2. deprecation gate
3. global middleware
4. version middleware
5. parameter validation
6. parameter sanitization
7. handler invocation
8. response formatting
9. version and deprecation headers

Failures are returned as ``RestError`` values. The handler call is the only
place where exceptions are caught.
"""

# Standard
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

# First-Party
from restroute.models import RouteConfig, RouteMeta, VersionRecord
from restroute.registry import VersionRegistry
from restroute.request import RestRequest
from restroute.responses import ErrorCode, format_response, RestError, RestResponse
from restroute.services.logging_service import LoggingService

logging_service = LoggingService()
logger = logging_service.get_logger("pipeline")

ROUTE_META_ATTRIBUTE = "route_meta"
DEPRECATION_WARNING = '299 - "API version deprecated"'

Result = Union[RestResponse, RestError]


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC.

    Compact offsets (``+0000``) and fractional seconds of any precision are
    accepted, as by ``datetime.fromisoformat`` since Python 3.11.

    Args:
        value: Date string

    Returns:
        Optional[datetime]: Aware datetime, None when unparsable

    Examples:
        >>> parse_date("2024-01-31")
        datetime.datetime(2024, 1, 31, 0, 0, tzinfo=datetime.timezone.utc)
        >>> parse_date("2024-01-31T10:00:00Z").hour
        10
        >>> parse_date("next tuesday") is None
        True
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RequestPipeline:
    """Dispatches requests carrying route metadata to their handlers."""

    def __init__(self, registry: VersionRegistry, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the pipeline.

        Args:
            registry: Registry providing the global middleware chain
            clock: Returns the current aware datetime; UTC wall clock by default
        """
        self.registry = registry
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def handle_request(self, request: RestRequest) -> Result:
        """Run a request through the pipeline.

        Args:
            request: Request with ``route_meta`` attached by the transport

        Returns:
            RestResponse | RestError: Final result
        """
        route_meta = self.extract_route_metadata(request)
        if route_meta is None:
            logger.info(f"No route metadata for {request.method} {request.route}")
            return RestError(ErrorCode.ROUTE_NOT_FOUND, "Route not found", {"status": 404})

        version = route_meta.version
        config = route_meta.route_config

        deprecation = self.handle_deprecation(version, route_meta.version_record)
        if isinstance(deprecation, RestError):
            return deprecation

        result = self._dispatch(request, route_meta, config)

        if deprecation is not None:
            for name, value in deprecation.get_headers().items():
                result.header(name, value)

        return result

    def _dispatch(self, request: RestRequest, route_meta: RouteMeta, config: RouteConfig) -> Result:
        short_circuit = self.apply_global_middleware(request, route_meta)
        if short_circuit is not None:
            return short_circuit

        short_circuit = self.apply_version_middleware(request, route_meta)
        if short_circuit is not None:
            return short_circuit

        validation_error = self.validate_request(request, config)
        if validation_error is not None:
            return validation_error

        sanitized_request = self.sanitize_request(request, config)

        response = format_response(self.invoke(sanitized_request, route_meta))
        if isinstance(response, RestResponse):
            response.header("X-API-Version", route_meta.version)
        return response

    def extract_route_metadata(self, request: RestRequest) -> Optional[RouteMeta]:
        meta = request.get_attributes().get(ROUTE_META_ATTRIBUTE)
        return meta if isinstance(meta, RouteMeta) else None

    def handle_deprecation(self, version: str, record: VersionRecord) -> Optional[Result]:
        """Build deprecation headers and block versions past their removal date.

        Args:
            version: API version
            record: Version record

        Returns:
            None for live versions, a header-carrying RestResponse for
            deprecated ones, a 410 RestError once the removal date has passed
        """
        if not record.deprecated:
            return None

        response = RestResponse()
        response.header("Warning", DEPRECATION_WARNING)
        response.header("X-API-Deprecated", "true")

        if record.deprecation_date:
            response.header("X-API-Deprecation-Date", record.deprecation_date)
        if record.removal_date:
            response.header("X-API-Removal-Date", record.removal_date)
        if record.successor_version:
            response.header("X-API-Successor-Version", record.successor_version)

        if record.removal_date:
            removal = parse_date(record.removal_date)
            if removal is None:
                logger.warning(f"Ignoring unparsable removal date {record.removal_date!r} of API version {version}")
            elif removal < self.clock():
                successor = record.successor_version or "latest"
                logger.info(f"Blocked request to removed API version {version}")
                error = RestError(
                    ErrorCode.VERSION_REMOVED,
                    f"API version {version} has been removed. Please use version {successor}.",
                    {"status": 410},
                )
                for name, value in response.get_headers().items():
                    error.header(name, value)
                return error

        return response

    def apply_global_middleware(self, request: RestRequest, route_meta: RouteMeta) -> Optional[Result]:
        return self.registry.global_middleware.apply(request, route_meta)

    def apply_version_middleware(self, request: RestRequest, route_meta: RouteMeta) -> Optional[Result]:
        return route_meta.version_record.middleware.apply(request, route_meta)

    def validate_request(self, request: RestRequest, config: RouteConfig) -> Optional[RestError]:
        """Check required parameters and run validate callbacks, stopping at the first failure.

        Args:
            request: Request object
            config: Route configuration

        Returns:
            Optional[RestError]: 400 error, or None if valid
        """
        for param, spec in config.args.items():
            value = request.get_param(param)

            if spec.required and value is None:
                return RestError(ErrorCode.MISSING_PARAMETER, f"Missing required parameter: {param}", {"status": 400})

            if callable(spec.validate_callback) and not spec.validate_callback(value, request, param):
                return RestError(ErrorCode.INVALID_PARAMETER, f"Invalid parameter: {param}", {"status": 400})

        return None

    def sanitize_request(self, request: RestRequest, config: RouteConfig) -> RestRequest:
        """Replace parameter values with their sanitized form, in place.

        Args:
            request: Request object
            config: Route configuration

        Returns:
            RestRequest: The same request
        """
        for param, spec in config.args.items():
            value = request.get_param(param)
            if value is not None and callable(spec.sanitize_callback):
                request.set_param(param, spec.sanitize_callback(value, request, param))
        return request

    def invoke(self, request: RestRequest, route_meta: RouteMeta) -> Any:
        """Call the route handler.

        Args:
            request: Sanitized request
            route_meta: Route metadata

        Returns:
            Any: Raw handler output, or a 500 RestError
        """
        callback = route_meta.route_config.callback
        if not callable(callback):
            logger.error(f"Route {route_meta.path} of API version {route_meta.version} has no callable handler")
            return RestError(ErrorCode.INVALID_CALLBACK, "Invalid route callback", {"status": 500})

        try:
            return callback(request)
        except Exception as e:
            logger.exception(f"Handler for {request.method} {route_meta.path} ({route_meta.version}) failed: {e}")
            return RestError(ErrorCode.INTERNAL_ERROR, str(e), {"status": 500})
