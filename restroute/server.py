# -*- coding: utf-8 -*-
"""Location: ./restroute/server.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

FastAPI transport for the versioned registry.

``register_all_routes`` mounts every ``(version, route)`` of a registry on a
FastAPI application under ``{rest_prefix}/{namespace}{route}``. Each endpoint:

- resolves the caller and binds it for the guards
- turns the Starlette request into a ``RestRequest`` (url, query, JSON or
  form parameters, argument defaults)
- blocks removed versions, then evaluates the route's permission callback;
  denials and unexpected failures keep the version's deprecation headers
- attaches the ``RouteMeta`` and hands the request to the pipeline
- serializes the ``RestResponse`` / ``RestError`` result as JSON

Usage:
    from restroute.server import register_all_routes

    register_all_routes(app, registry, pipeline)
"""

# Standard
import re
from typing import Any, Dict, List, Optional, Union

# Third-Party
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import ImmutableMultiDict

# First-Party
from restroute.auth import CurrentUser, reset_current_user, resolve_user, set_current_user
from restroute.config import settings
from restroute.models import ArgSpec, RouteConfig, RouteMeta, VersionRecord
from restroute.pipeline import RequestPipeline, ROUTE_META_ATTRIBUTE
from restroute.registry import VersionRegistry
from restroute.request import RestRequest
from restroute.responses import ErrorCode, RestError, RestResponse
from restroute.services.logging_service import LoggingService

logging_service = LoggingService()
logger = logging_service.get_logger("server")

PATH_PARAM_PATTERN = re.compile(r"{(\w+)(?::\w+)?}")


def mount_path(namespace: str, route: str) -> str:
    """HTTP path for a route of a namespace.

    Args:
        namespace: Full namespace, e.g. ``shop/v1``
        route: Normalized route

    Returns:
        str: Path served by FastAPI

    Examples:
        >>> mount_path("shop/v1", "/widgets/{widget_id}")
        '/api/shop/v1/widgets/{widget_id}'
        >>> mount_path("shop/v1", "/")
        '/api/shop/v1'
    """
    route = "" if route == "/" else route
    return f"{settings.rest_prefix}/{namespace}{route}"


def build_route_args(args: Dict[str, ArgSpec], route: str, methods: List[str]) -> List[Dict[str, Any]]:
    """OpenAPI parameter objects for a route's arguments.

    Args:
        args: Argument specs
        route: Route pattern
        methods: Route methods

    Returns:
        List[Dict[str, Any]]: OpenAPI parameters

    Examples:
        >>> build_route_args({"id": ArgSpec(required=True, type="integer")}, "/widgets/{id}", ["GET"])
        [{'name': 'id', 'in': 'path', 'required': True, 'schema': {'type': 'integer'}}]
        >>> build_route_args({"q": ArgSpec(enum=["a", "b"])}, "/search", ["GET"])[0]["schema"]
        {'enum': ['a', 'b']}
        >>> build_route_args({"name": ArgSpec()}, "/widgets", ["POST"])
        []
    """
    path_params = set(PATH_PARAM_PATTERN.findall(route))
    in_query = any(method in ("GET", "DELETE", "HEAD") for method in methods)
    parameters: List[Dict[str, Any]] = []

    for name, spec in args.items():
        if name in path_params:
            location = "path"
        elif in_query:
            location = "query"
        else:
            continue

        schema: Dict[str, Any] = {}
        if spec.type:
            schema["type"] = spec.type
        if spec.enum:
            schema["enum"] = list(spec.enum)
        if spec.default is not None:
            schema["default"] = spec.default

        parameter: Dict[str, Any] = {"name": name, "in": location, "required": location == "path" or spec.required, "schema": schema}
        if spec.description:
            parameter["description"] = spec.description
        parameters.append(parameter)

    return parameters


def flatten_multi_items(items: ImmutableMultiDict) -> Dict[str, Any]:
    """Collapse a multi-dict; keys given more than once keep every value.

    Args:
        items: Query string or form data

    Returns:
        Dict[str, Any]: Single values, or lists for repeated keys

    Examples:
        >>> flatten_multi_items(ImmutableMultiDict([("tag", "a"), ("tag", "b"), ("page", "2")]))
        {'tag': ['a', 'b'], 'page': '2'}
    """
    flattened: Dict[str, Any] = {}
    for key in items.keys():
        values = items.getlist(key)
        flattened[key] = values if len(values) > 1 else values[0]
    return flattened


async def build_rest_request(request: Request, config: RouteConfig, route: str) -> RestRequest:
    """Convert a Starlette request into a RestRequest.

    Args:
        request: Incoming HTTP request
        config: Matched route configuration
        route: Registered route pattern

    Returns:
        RestRequest: Transport-neutral request
    """
    json_params: Dict[str, Any] = {}
    body_params: Dict[str, Any] = {}

    content_type = request.headers.get("content-type", "")
    if request.method not in ("GET", "HEAD"):
        if "application/json" in content_type:
            body = await request.body()
            if body:
                try:
                    payload = await request.json()
                except ValueError:
                    logger.info(f"Ignoring malformed JSON body on {request.method} {request.url.path}")
                    payload = None
                if isinstance(payload, dict):
                    json_params = payload
        elif "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
            form = await request.form()
            body_params = flatten_multi_items(form)

    rest_request = RestRequest(
        method=request.method,
        route=route,
        query_params=flatten_multi_items(request.query_params),
        body_params=body_params,
        json_params=json_params,
        url_params=dict(request.path_params),
        headers=dict(request.headers),
    )
    rest_request.set_default_params({name: spec.default for name, spec in config.args.items() if spec.default is not None})
    return rest_request


def check_route_permission(rest_request: RestRequest, config: RouteConfig, user: CurrentUser) -> Optional[RestError]:
    """Evaluate the route's permission callback.

    Args:
        rest_request: Request object
        config: Route configuration
        user: Current caller

    Returns:
        Optional[RestError]: Error when access is denied
    """
    allowed = config.permission_callback(rest_request)
    if isinstance(allowed, RestError):
        return allowed
    if not allowed:
        status = 403 if user.is_authenticated else 401
        return RestError(ErrorCode.FORBIDDEN, "Sorry, you are not allowed to do that.", {"status": status})
    return None


def to_http_response(result: Union[RestResponse, RestError]) -> Response:
    """Serialize a pipeline result.

    Args:
        result: Pipeline result

    Returns:
        Response: JSON response, or an empty one for 204/304
    """
    if isinstance(result, RestError):
        return JSONResponse(content=jsonable_encoder(result.to_dict()), status_code=result.status, headers=result.get_headers())

    if result.status in (204, 304):
        return Response(status_code=result.status, headers=result.get_headers())
    return JSONResponse(content=jsonable_encoder(result.data), status_code=result.status, headers=result.get_headers())


def internal_error_response(message: str = "Internal server error", headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(content=RestError(ErrorCode.INTERNAL_ERROR, message, {"status": 500}).to_dict(), status_code=500, headers=headers)


def deprecation_headers(pipeline: RequestPipeline, version: str, record: VersionRecord) -> Dict[str, str]:
    """Deprecation headers of a version, empty for live versions.

    Args:
        pipeline: Dispatch pipeline owning the deprecation gate
        version: API version
        record: Version record

    Returns:
        Dict[str, str]: Headers
    """
    gate = pipeline.handle_deprecation(version, record)
    return gate.get_headers() if gate is not None else {}


def make_endpoint(pipeline: RequestPipeline, version: str, route: str, config: RouteConfig, record: VersionRecord):
    """Build the FastAPI endpoint for one registered route.

    Args:
        pipeline: Dispatch pipeline
        version: API version
        route: Route pattern
        config: Route configuration
        record: Version record

    Returns:
        Callable: Async endpoint
    """
    route_meta = RouteMeta(version=version, route_config=config, version_record=record, path=route)

    def dispatch(rest_request: RestRequest, user: CurrentUser) -> Union[RestResponse, RestError]:
        token = set_current_user(user)
        try:
            gate = pipeline.handle_deprecation(version, record)
            if isinstance(gate, RestError):
                return gate
            denied = check_route_permission(rest_request, config, user)
            if denied is not None:
                if gate is not None:
                    for name, value in gate.get_headers().items():
                        denied.header(name, value)
                return denied
            rest_request.attributes[ROUTE_META_ATTRIBUTE] = route_meta
            return pipeline.handle_request(rest_request)
        finally:
            reset_current_user(token)

    async def endpoint(request: Request) -> Response:
        user = resolve_user(request.headers.get("authorization"))
        try:
            rest_request = await build_rest_request(request, config, route)
            result = await run_in_threadpool(dispatch, rest_request, user)
        except Exception as e:
            logger.exception(f"Unhandled error dispatching {request.method} {request.url.path}: {e}")
            return internal_error_response(headers=deprecation_headers(pipeline, version, record))
        return to_http_response(result)

    slug = re.sub(r"\W+", "_", route).strip("_") or "index"
    endpoint.__name__ = f"{version}_{slug}"
    return endpoint


def register_all_routes(app: FastAPI, registry: VersionRegistry, pipeline: RequestPipeline) -> int:
    """Mount every registered route and the namespace indexes on an app.

    Args:
        app: FastAPI application
        registry: Populated registry
        pipeline: Dispatch pipeline

    Returns:
        int: Number of routes mounted
    """
    mounted = 0
    for version, record in registry.versions().items():
        namespace = registry.get_full_namespace(version)

        for route, config in record.routes.items():
            methods = list(config.methods)
            app.add_api_route(
                mount_path(namespace, route),
                make_endpoint(pipeline, version, route, config, record),
                methods=methods,
                name=f"{namespace}{route}",
                tags=[namespace],
                summary=config.summary or None,
                description=config.description or None,
                deprecated=record.deprecated or config.deprecated,
                openapi_extra=_openapi_extra(config, route, methods),
            )
            mounted += 1

        if "/" not in record.routes:
            app.add_api_route(mount_path(namespace, "/"), _version_index(registry, version), methods=["GET"], name=f"{namespace}:index", tags=[namespace])

    app.add_api_route(f"{settings.rest_prefix}/{registry.base_namespace}", _namespace_index(registry), methods=["GET"], name=f"{registry.base_namespace}:index")

    logger.info(f"Mounted {mounted} routes across {len(registry.versions())} API versions")
    return mounted


def _namespace_index(registry: VersionRegistry):
    async def namespace_index() -> JSONResponse:
        return JSONResponse(content=jsonable_encoder(registry.get_api_documentation()))

    return namespace_index


def _version_index(registry: VersionRegistry, version: str):
    async def version_index() -> JSONResponse:
        docs = registry.get_api_documentation()["versions"].get(version, {})
        return JSONResponse(content=jsonable_encoder(docs), headers={"X-API-Version": version})

    version_index.__name__ = f"{version}_index"
    return version_index


def _openapi_extra(config: RouteConfig, route: str, methods: List[str]) -> Optional[Dict[str, Any]]:
    parameters = build_route_args(config.args, route, methods)
    return {"parameters": parameters} if parameters else None
