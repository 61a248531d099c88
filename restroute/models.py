# -*- coding: utf-8 -*-
"""Location: ./restroute/models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Registry data model: versions, routes, argument specs and route metadata.
"""

# Standard
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

# First-Party
from restroute.chain import MiddlewareChain

Handler = Callable[[Any], Any]
PermissionCallback = Callable[[Any], Any]
Validator = Callable[[Any, Any, str], Any]
Sanitizer = Callable[[Any, Any, str], Any]

# Method sets, following common REST server conventions
READABLE = "GET"
CREATABLE = "POST"
EDITABLE = "POST, PUT, PATCH"
DELETABLE = "DELETE"
ALLMETHODS = "GET, POST, PUT, PATCH, DELETE"


def allow_all(_request: Any) -> bool:
    """Default permission callback.

    Args:
        _request: Ignored

    Returns:
        bool: Always True
    """
    return True


def normalize_methods(methods: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    """Turn a method list into a tuple of upper-case verbs.

    Args:
        methods: ``"GET"``, ``"GET, POST"`` or a sequence of verbs

    Returns:
        Tuple[str, ...]: Unique verbs in declaration order

    Raises:
        ValueError: If no method remains

    Examples:
        >>> normalize_methods("get")
        ('GET',)
        >>> normalize_methods(EDITABLE)
        ('POST', 'PUT', 'PATCH')
        >>> normalize_methods(["GET", "post", "GET"])
        ('GET', 'POST')
    """
    if isinstance(methods, str):
        methods = methods.split(",")
    verbs: List[str] = []
    for method in methods:
        verb = str(method).strip().upper()
        if verb and verb not in verbs:
            verbs.append(verb)
    if not verbs:
        raise ValueError("A route needs at least one HTTP method")
    return tuple(verbs)


def normalize_path(path: str) -> str:
    """Store paths with exactly one leading separator.

    Args:
        path: Route pattern

    Returns:
        str: Normalized path

    Examples:
        >>> normalize_path("widgets"), normalize_path("///widgets/{id}"), normalize_path("")
        ('/widgets', '/widgets/{id}', '/')
    """
    return "/" + path.lstrip("/")


@dataclass
class ArgSpec:
    """Schema for a single request parameter."""

    required: bool = False
    default: Any = None
    validate_callback: Optional[Validator] = None
    sanitize_callback: Optional[Sanitizer] = None
    type: Optional[str] = None
    enum: Optional[List[Any]] = None
    description: str = ""

    @classmethod
    def coerce(cls, spec: Union["ArgSpec", Mapping[str, Any], None]) -> "ArgSpec":
        """Build an ArgSpec from a mapping, ignoring unknown keys.

        Args:
            spec: ArgSpec, mapping or None

        Returns:
            ArgSpec: The spec

        Examples:
            >>> ArgSpec.coerce({"required": True, "colour": "red"}).required
            True
            >>> ArgSpec.coerce(None)
            ArgSpec(required=False, default=None, validate_callback=None, sanitize_callback=None, type=None, enum=None, description='')
        """
        if isinstance(spec, ArgSpec):
            return spec
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (spec or {}).items() if k in known})

    def to_doc(self) -> Dict[str, Any]:
        """Documentation view, without callables and unset values.

        Returns:
            Dict[str, Any]: Documented keys
        """
        doc: Dict[str, Any] = {"required": self.required}
        for key in ("type", "default", "enum"):
            value = getattr(self, key)
            if value is not None:
                doc[key] = value
        if self.description:
            doc["description"] = self.description
        return doc


@dataclass
class RouteConfig:
    """Configuration for one ``(version, path)`` route."""

    methods: Tuple[str, ...] = (READABLE,)
    callback: Optional[Handler] = None
    permission_callback: PermissionCallback = allow_all
    args: Dict[str, ArgSpec] = field(default_factory=dict)
    deprecated: bool = False
    deprecation_message: str = ""
    rate_limit: Optional[int] = None
    cache_ttl: Optional[int] = None
    summary: str = ""
    description: str = ""

    def __post_init__(self):
        self.methods = normalize_methods(self.methods)
        self.args = {name: ArgSpec.coerce(spec) for name, spec in (self.args or {}).items()}
        if self.permission_callback is None:
            self.permission_callback = allow_all

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "RouteConfig":
        """Merge a plain mapping over the route defaults.

        Args:
            config: Route options; unknown keys are ignored

        Returns:
            RouteConfig: Route configuration

        Examples:
            >>> cfg = RouteConfig.from_mapping({"methods": "post", "args": {"id": {"required": True}}})
            >>> cfg.methods, cfg.args["id"].required, cfg.permission_callback(None)
            (('POST',), True, True)
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})


@dataclass
class VersionRecord:
    """State of one registered API version."""

    routes: Dict[str, RouteConfig] = field(default_factory=dict)
    middleware: MiddlewareChain = field(default_factory=MiddlewareChain)
    deprecated: bool = False
    deprecation_date: Optional[str] = None
    removal_date: Optional[str] = None
    successor_version: Optional[str] = None
    description: str = ""
    changelog: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]] = None) -> "VersionRecord":
        """Merge a plain mapping over the version defaults.

        Routes given as mappings are turned into RouteConfig instances with
        normalized paths.

        Args:
            config: Version options; unknown keys are ignored

        Returns:
            VersionRecord: Fresh record

        Examples:
            >>> rec = VersionRecord.from_mapping({"deprecated": True, "routes": {"items": {}}})
            >>> rec.deprecated, list(rec.routes)
            (True, ['/items'])
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (config or {}).items() if k in known}
        routes = values.pop("routes", None) or {}
        middleware = values.pop("middleware", None)
        record = cls(**values)
        if isinstance(middleware, MiddlewareChain):
            record.middleware = middleware
        elif middleware:
            for priority, bucket in middleware.items():
                for fn in bucket:
                    record.middleware.add(fn, priority)
        for path, route in routes.items():
            record.routes[normalize_path(path)] = route if isinstance(route, RouteConfig) else RouteConfig.from_mapping(route)
        return record


@dataclass(frozen=True)
class RouteMeta:
    """Per-request bundle naming the version and route that apply."""

    version: str
    route_config: RouteConfig
    version_record: VersionRecord
    path: str = ""
