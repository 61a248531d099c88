# -*- coding: utf-8 -*-
"""Location: ./restroute/registry.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Version Registry and Route Table.

``VersionRegistry`` owns every registered API version, the routes and
middleware attached to each of them, the global middleware chain and the
cached API documentation. One instance is built at startup and shared with the
transport; it is read-only while traffic is being served.

Examples:
    >>> registry = VersionRegistry(base_namespace="shop")
    >>> registry.get("v1", "widgets", lambda request: {"name": "foo"})
    True
    >>> registry.get_full_namespace("v1")
    'shop/v1'
    >>> list(registry.get_version("v1").routes)
    ['/widgets']
"""

# Standard
import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

# First-Party
from restroute.chain import DEFAULT_PRIORITY, Middleware, MiddlewareChain
from restroute.config import settings
from restroute.models import Handler, normalize_path, RouteConfig, VersionRecord
from restroute.services.logging_service import LoggingService
from restroute.utils.url_utils import add_query_args, rest_url, sanitize_key

logging_service = LoggingService()
logger = logging_service.get_logger("registry")

RouteSpec = Union[RouteConfig, Mapping[str, Any]]


class VersionRegistry:
    """Registry of API versions, their routes and middleware."""

    def __init__(self, base_namespace: Optional[str] = None, default_version: Optional[str] = None):
        """Create an empty registry.

        Args:
            base_namespace: Namespace prefix for every version; derived from
                ``settings.app_slug`` when omitted
            default_version: Version advertised by discovery
        """
        self.base_namespace = self._derive_namespace(base_namespace)
        self.default_version = sanitize_key(default_version or settings.default_version)
        self.global_middleware = MiddlewareChain()
        self._versions: Dict[str, VersionRecord] = {}
        self._api_docs: Optional[Dict[str, Any]] = None

    @staticmethod
    def _derive_namespace(base_namespace: Optional[str]) -> str:
        if base_namespace is None:
            base_namespace = settings.app_slug.replace("-", "_")
        return sanitize_key(base_namespace)

    def init(self, base_namespace: Optional[str] = None, supported_versions: Iterable[str] = ("v1",), default_version: str = "v1") -> bool:
        """Reset the namespace and register the supported versions.

        Args:
            base_namespace: Custom namespace; the app slug is used when None
            supported_versions: Versions registered with default settings
            default_version: Default API version

        Returns:
            bool: Always True

        Examples:
            >>> registry = VersionRegistry()
            >>> registry.init("My-Shop", ["v1", "v2"], "v2")
            True
            >>> registry.base_namespace, registry.default_version, registry.get_available_versions()
            ('my-shop', 'v2', ['v1', 'v2'])
        """
        self.base_namespace = self._derive_namespace(base_namespace)
        self.default_version = sanitize_key(default_version)

        for version in supported_versions:
            self.register_version(version)

        logger.info(f"REST namespace '{self.base_namespace}' initialized with versions {list(self._versions)}")
        return True

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def register_version(self, version: str, config: Optional[Mapping[str, Any]] = None) -> bool:
        """Register an API version, replacing any earlier record for it.

        Args:
            version: Version identifier (e.g. ``v1``)
            config: Options merged over the version defaults

        Returns:
            bool: Always True
        """
        version = sanitize_key(version)
        if version in self._versions:
            logger.debug(f"Replacing registration of API version {version}")
        self._versions[version] = VersionRecord.from_mapping(config)
        self._invalidate_docs()
        return True

    def deprecate_version(
        self,
        version: str,
        deprecation_date: str,
        removal_date: Optional[str] = None,
        successor_version: Optional[str] = None,
    ) -> bool:
        """Mark a version as deprecated.

        Dates are stored as given (ISO 8601 expected, not validated).

        Args:
            version: Version to deprecate
            deprecation_date: Deprecation date
            removal_date: Planned removal date
            successor_version: Recommended successor version

        Returns:
            bool: False if the version is unknown
        """
        record = self._versions.get(version)
        if record is None:
            logger.warning(f"Cannot deprecate unknown API version {version}")
            return False

        record.deprecated = True
        record.deprecation_date = deprecation_date
        record.removal_date = removal_date
        record.successor_version = successor_version
        self._invalidate_docs()

        logger.info(f"API version {version} deprecated on {deprecation_date}" + (f", removal on {removal_date}" if removal_date else ""))
        return True

    def describe_version(self, version: str, description: Optional[str] = None, changelog: Optional[Iterable[str]] = None) -> VersionRecord:
        """Set documentation fields of a version, creating it when needed.

        Args:
            version: API version
            description: New description, unchanged when None
            changelog: New changelog entries, unchanged when None

        Returns:
            VersionRecord: Updated record
        """
        record = self.get_or_create_version(version)
        if description is not None:
            record.description = description
        if changelog is not None:
            record.changelog = [str(line) for line in changelog]
        self._invalidate_docs()
        return record

    def get_version(self, version: str) -> Optional[VersionRecord]:
        return self._versions.get(version)

    def get_or_create_version(self, version: str) -> VersionRecord:
        """Return a version record, registering it with defaults when unknown.

        Args:
            version: Version identifier

        Returns:
            VersionRecord: Existing or new record
        """
        version = sanitize_key(version)
        if version not in self._versions:
            self.register_version(version)
        return self._versions[version]

    def get_available_versions(self, include_deprecated: bool = True) -> List[str]:
        """List versions in registration order.

        Args:
            include_deprecated: Whether to include deprecated versions

        Returns:
            List[str]: Version identifiers
        """
        if include_deprecated:
            return list(self._versions)
        return [version for version, record in self._versions.items() if not record.deprecated]

    def versions(self) -> Dict[str, VersionRecord]:
        return dict(self._versions)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def add_route(self, version: str, route: str, config: RouteSpec) -> bool:
        """Add a route to a version, creating the version when needed.

        Args:
            version: API version
            route: Route pattern, e.g. ``widgets/{widget_id}``
            config: RouteConfig or mapping merged over the route defaults

        Returns:
            bool: Always True
        """
        record = self.get_or_create_version(version)
        route = normalize_path(route)
        route_config = config if isinstance(config, RouteConfig) else RouteConfig.from_mapping(config)

        if route in record.routes:
            logger.debug(f"Overwriting route {route} in API version {version}")
        record.routes[route] = route_config
        self._invalidate_docs()
        return True

    def add_routes(self, version: str, routes: Mapping[str, RouteSpec]) -> bool:
        """Add several routes to a version.

        Args:
            version: API version
            routes: Mapping of route pattern to configuration

        Returns:
            bool: Always True
        """
        for route, config in routes.items():
            self.add_route(version, route, config)
        return True

    def _add_verb_route(self, verb: str, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]]) -> bool:
        config = dict(args or {})
        config.update({"methods": verb, "callback": callback})
        return self.add_route(version, route, config)

    def get(self, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Add a GET route.

        Args:
            version: API version
            route: Route pattern
            callback: Route handler
            args: Additional route options

        Returns:
            bool: Always True
        """
        return self._add_verb_route("GET", version, route, callback, args)

    def post(self, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Add a POST route."""
        return self._add_verb_route("POST", version, route, callback, args)

    def put(self, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Add a PUT route."""
        return self._add_verb_route("PUT", version, route, callback, args)

    def patch(self, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Add a PATCH route."""
        return self._add_verb_route("PATCH", version, route, callback, args)

    def delete(self, version: str, route: str, callback: Handler, args: Optional[Mapping[str, Any]] = None) -> bool:
        """Add a DELETE route."""
        return self._add_verb_route("DELETE", version, route, callback, args)

    def copy_routes(self, from_version: str, to_version: str, exclude_routes: Iterable[str] = ()) -> bool:
        """Copy routes from one version into another.

        Route configs are shared, not cloned: a later change to a copied
        RouteConfig is visible from both versions.

        Args:
            from_version: Source version
            to_version: Target version, created when unknown
            exclude_routes: Routes to skip

        Returns:
            bool: False if the source version is unknown
        """
        source = self._versions.get(from_version)
        if source is None:
            logger.warning(f"Cannot copy routes from unknown API version {from_version}")
            return False

        target = self.get_or_create_version(to_version)
        excluded = {normalize_path(route) for route in exclude_routes}

        copied = 0
        for route, config in source.routes.items():
            if route not in excluded:
                target.routes[route] = config
                copied += 1

        self._invalidate_docs()
        logger.debug(f"Copied {copied} routes from {from_version} to {to_version}")
        return True

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    def add_middleware(self, version: str, middleware: Middleware, priority: int = DEFAULT_PRIORITY) -> bool:
        """Add middleware to a version, creating the version when needed.

        Args:
            version: API version
            middleware: Callable ``(request, route_meta)``
            priority: Lower runs earlier

        Returns:
            bool: Always True
        """
        self.get_or_create_version(version).middleware.add(middleware, priority)
        return True

    def add_global_middleware(self, middleware: Middleware, priority: int = DEFAULT_PRIORITY) -> bool:
        """Add middleware applied to every version, ahead of version middleware.

        Args:
            middleware: Callable ``(request, route_meta)``
            priority: Lower runs earlier

        Returns:
            bool: Always True
        """
        self.global_middleware.add(middleware, priority)
        return True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_full_namespace(self, version: str) -> str:
        return f"{self.base_namespace}/{version}"

    def get_route_url(self, version: str, route: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Absolute URL for a route of a version.

        Args:
            version: API version
            route: Route pattern
            params: Query arguments

        Returns:
            str: Route URL

        Examples:
            >>> VersionRegistry(base_namespace="shop").get_route_url("v1", "widgets", {"page": 2})
            'http://localhost:8000/api/shop/v1/widgets?page=2'
        """
        route = normalize_path(route)
        url = rest_url(settings.site_url, settings.rest_prefix, self.get_full_namespace(version) + route)
        return add_query_args(url, params)

    def get_api_documentation(self) -> Dict[str, Any]:
        """Documentation tree for every version, cached until the next registration.

        Callers get their own copy; the cached tree is never exposed.

        Returns:
            Dict[str, Any]: Base namespace, default version and per-version routes
        """
        if self._api_docs is not None:
            return copy.deepcopy(self._api_docs)

        docs: Dict[str, Any] = {
            "base_namespace": self.base_namespace,
            "default_version": self.default_version,
            "versions": {},
        }

        for version, record in self._versions.items():
            version_docs: Dict[str, Any] = {
                "version": version,
                "namespace": self.get_full_namespace(version),
                "deprecated": record.deprecated,
                "description": record.description,
                "routes": {},
            }
            if record.changelog:
                version_docs["changelog"] = list(record.changelog)

            if record.deprecated:
                version_docs["deprecation_info"] = {
                    "deprecation_date": record.deprecation_date,
                    "removal_date": record.removal_date,
                    "successor_version": record.successor_version,
                }

            for route, config in record.routes.items():
                route_docs: Dict[str, Any] = {
                    "methods": list(config.methods),
                    "url": self.get_route_url(version, route),
                    "deprecated": config.deprecated,
                    "args": {name: spec.to_doc() for name, spec in config.args.items()},
                }
                if config.deprecated and config.deprecation_message:
                    route_docs["deprecation_message"] = config.deprecation_message
                if config.summary:
                    route_docs["summary"] = config.summary
                version_docs["routes"][route] = route_docs

            docs["versions"][version] = version_docs

        self._api_docs = docs
        return copy.deepcopy(docs)

    def _invalidate_docs(self) -> None:
        self._api_docs = None
