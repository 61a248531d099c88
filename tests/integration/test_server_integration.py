# -*- coding: utf-8 -*-
"""Location: ./tests/integration/test_server_integration.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

HTTP integration tests: a small widget shop served through FastAPI.
"""

# Standard
from datetime import datetime, timezone
from unittest.mock import Mock

# Third-Party
from fastapi.testclient import TestClient
import pytest

# First-Party
from restroute.auth import create_access_token, create_nonce, get_current_user
from restroute.guards import check_permissions, verify_nonce
from restroute.main import create_app
from restroute.models import EDITABLE
from restroute.pipeline import RequestPipeline
from restroute.responses import error_response, RestResponse, success_response


def is_numeric(value, request, name):
    return str(value).isdigit()


def setup_shop(registry):
    """Register a small two-version widget API."""
    widgets = {"1": {"id": "1", "name": "Sprocket"}}
    orders = []

    def list_widgets(request):
        return {"widgets": list(widgets.values()), "page": request.get_param("page")}

    def get_widget(request):
        widget = widgets.get(request.get_param("widget_id"))
        if widget is None:
            return {"error": "Widget not found", "code": "widget_not_found", "status": 404}
        return widget

    def widget(request):
        if request.method == "DELETE":
            widgets.pop(request.get_param("widget_id"), None)
            return RestResponse(status=204)
        return get_widget(request)

    def create_order(request):
        order = {"id": str(len(orders) + 1), "name": request.get_param("name")}
        orders.append(order)
        return success_response(order, message="Created", status=201)

    def whoami(request):
        return {"id": get_current_user().id}

    def explode(request):
        raise RuntimeError("handler exploded")

    registry.get("v1", "widgets", list_widgets, {"args": {"page": {"type": "integer", "default": 1, "validate_callback": is_numeric}}})
    registry.add_route(
        "v1",
        "widgets/{widget_id}",
        {
            "methods": "GET, DELETE",
            "callback": widget,
            "permission_callback": lambda request: request.method == "GET" or check_permissions("manage_widgets"),
            "args": {"widget_id": {"required": True, "validate_callback": is_numeric}},
        },
    )
    registry.add_route(
        "v1",
        "orders",
        {
            "methods": EDITABLE,
            "callback": create_order,
            "permission_callback": lambda request: get_current_user().is_authenticated,
            "args": {"name": {"required": True, "sanitize_callback": lambda value, request, name: str(value).strip()}},
        },
    )
    registry.post("v1", "nonce-protected", whoami, {"permission_callback": lambda request: verify_nonce(request, "protect")})
    registry.get("v1", "whoami", whoami)
    registry.get("v1", "explode", explode)

    registry.copy_routes("v1", "v2", exclude_routes=["explode"])
    registry.deprecate_version("v1", "2025-01-01", "2999-01-01", "v2")


@pytest.fixture
def client(registry):
    app = create_app(registry=registry, setup=setup_shop)
    return TestClient(app)


def auth_header(user_id="7", capabilities=("read",)):
    return {"Authorization": "Bearer " + create_access_token(user_id, capabilities)}


class TestDispatch:
    """Requests reach their handlers through the pipeline."""

    def test_list_widgets(self, client):
        response = client.get("/api/shop/v2/widgets")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"widgets": [{"id": "1", "name": "Sprocket"}], "page": 1}}
        assert response.headers["x-api-version"] == "v2"
        assert "x-api-deprecated" not in response.headers

    def test_query_parameter_validation(self, client):
        response = client.get("/api/shop/v2/widgets", params={"page": "two"})

        assert response.status_code == 400
        assert response.json() == {"code": "invalid_parameter", "message": "Invalid parameter: page", "data": {"status": 400}}
        assert "x-api-version" not in response.headers

    def test_path_parameter(self, client):
        response = client.get("/api/shop/v2/widgets/1")

        assert response.status_code == 200
        assert response.json()["data"] == {"id": "1", "name": "Sprocket"}

    def test_handler_error_mapping(self, client):
        response = client.get("/api/shop/v2/widgets/99")

        assert response.status_code == 404
        assert response.json() == {"code": "widget_not_found", "message": "Widget not found", "data": {"status": 404}}

    def test_json_body(self, client):
        response = client.post("/api/shop/v2/orders", json={"name": "  Gear  "}, headers=auth_header())

        assert response.status_code == 201
        assert response.json() == {"success": True, "data": {"id": "1", "name": "Gear"}, "message": "Created"}

    def test_form_body(self, client):
        response = client.put("/api/shop/v2/orders", data={"name": "Cog"}, headers=auth_header())

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Cog"

    def test_missing_body_parameter(self, client):
        response = client.patch("/api/shop/v2/orders", json={}, headers=auth_header())

        assert response.status_code == 400
        assert response.json()["code"] == "missing_parameter"

    def test_malformed_json_body(self, client):
        response = client.post("/api/shop/v2/orders", content=b"{not json", headers={**auth_header(), "Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required parameter: name"

    def test_no_content(self, client):
        response = client.delete("/api/shop/v2/widgets/1", headers=auth_header(capabilities=("manage_widgets",)))

        assert response.status_code == 204
        assert response.content == b""

    def test_unregistered_method(self, client):
        assert client.put("/api/shop/v2/whoami").status_code == 405

    def test_unknown_route(self, client):
        assert client.get("/api/shop/v2/gadgets").status_code == 404

    def test_excluded_route_not_copied(self, client):
        assert client.get("/api/shop/v2/explode").status_code == 404

    def test_repeated_query_keys(self, registry):
        def setup(reg):
            reg.get("v1", "tags", lambda request: {"tag": request.get_param("tag"), "page": request.get_param("page")})

        client = TestClient(create_app(registry=registry, setup=setup))
        response = client.get("/api/shop/v1/tags?tag=a&tag=b&page=2")

        assert response.json()["data"] == {"tag": ["a", "b"], "page": "2"}


class TestPermissions:
    def test_anonymous_is_unauthorized(self, client):
        response = client.post("/api/shop/v2/orders", json={"name": "Gear"})

        assert response.status_code == 401
        assert response.json()["code"] == "rest_forbidden"

    def test_capability_missing(self, client):
        response = client.delete("/api/shop/v2/widgets/1", headers=auth_header(capabilities=("read",)))

        assert response.status_code == 403
        assert response.json() == {
            "code": "rest_forbidden",
            "message": "You do not have permission to access this resource",
            "data": {"status": 403},
        }

    def test_invalid_token_is_anonymous(self, client):
        response = client.post("/api/shop/v2/orders", json={"name": "Gear"}, headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_current_user_visible_to_handler(self, client):
        response = client.get("/api/shop/v2/whoami", headers=auth_header("12"))

        assert response.json()["data"] == {"id": "12"}

    def test_nonce_header(self, client):
        nonce = create_nonce("protect", "12")

        response = client.post("/api/shop/v2/nonce-protected", headers={**auth_header("12"), "X-Nonce": nonce})

        assert response.status_code == 200
        assert response.json()["data"] == {"id": "12"}

    def test_nonce_for_other_user(self, client):
        nonce = create_nonce("protect", "13")

        response = client.post("/api/shop/v2/nonce-protected", headers={**auth_header("12"), "X-Nonce": nonce})

        assert response.status_code == 403
        assert response.json()["code"] == "rest_nonce_invalid"


class TestDeprecation:
    def test_deprecated_version_headers(self, client):
        response = client.get("/api/shop/v1/widgets")

        assert response.status_code == 200
        assert response.headers["warning"] == '299 - "API version deprecated"'
        assert response.headers["x-api-deprecated"] == "true"
        assert response.headers["x-api-deprecation-date"] == "2025-01-01"
        assert response.headers["x-api-removal-date"] == "2999-01-01"
        assert response.headers["x-api-successor-version"] == "v2"
        assert response.headers["x-api-version"] == "v1"

    def test_headers_on_errors(self, client):
        response = client.get("/api/shop/v1/widgets", params={"page": "x"})

        assert response.status_code == 400
        assert response.headers["x-api-deprecated"] == "true"

    def test_removed_version(self, registry):
        def setup(reg):
            reg.get("v1", "widgets", lambda request: [])
            reg.deprecate_version("v1", "2024-01-01", "2024-06-01", "v2")

        pipeline = RequestPipeline(registry, clock=lambda: datetime(2024, 6, 2, tzinfo=timezone.utc))
        client = TestClient(create_app(registry=registry, pipeline=pipeline, setup=setup))

        response = client.get("/api/shop/v1/widgets")

        assert response.status_code == 410
        assert response.json() == {
            "code": "api_version_removed",
            "message": "API version v1 has been removed. Please use version v2.",
            "data": {"status": 410},
        }
        assert response.headers["x-api-removal-date"] == "2024-06-01"
        assert "x-api-version" not in response.headers

    def test_denied_request_keeps_headers(self, registry):
        """A permission denial on a deprecated version still announces the deprecation."""

        def setup(reg):
            reg.get("v1", "secret", lambda request: "hidden", {"permission_callback": lambda request: False})
            reg.deprecate_version("v1", "2024-01-01", "2999-01-01", "v2")

        client = TestClient(create_app(registry=registry, setup=setup))

        anonymous = client.get("/api/shop/v1/secret")
        authenticated = client.get("/api/shop/v1/secret", headers=auth_header())

        assert anonymous.status_code == 401
        assert authenticated.status_code == 403
        for response in (anonymous, authenticated):
            assert response.json()["code"] == "rest_forbidden"
            assert response.headers["warning"] == '299 - "API version deprecated"'
            assert response.headers["x-api-deprecated"] == "true"
            assert response.headers["x-api-removal-date"] == "2999-01-01"
            assert response.headers["x-api-successor-version"] == "v2"

    def test_removed_version_before_permission(self, registry):
        permission = Mock(return_value=False)

        def setup(reg):
            reg.get("v1", "secret", lambda request: "hidden", {"permission_callback": permission})
            reg.deprecate_version("v1", "2024-01-01", "2024-06-01", "v2")

        pipeline = RequestPipeline(registry, clock=lambda: datetime(2024, 6, 2, tzinfo=timezone.utc))
        client = TestClient(create_app(registry=registry, pipeline=pipeline, setup=setup))

        response = client.get("/api/shop/v1/secret")

        assert response.status_code == 410
        assert response.json()["code"] == "api_version_removed"
        assert response.headers["x-api-deprecated"] == "true"
        permission.assert_not_called()

    def test_internal_error_keeps_headers(self, registry):
        def broken(request, meta):
            raise RuntimeError("middleware exploded")

        def setup(reg):
            reg.get("v1", "widgets", lambda request: [])
            reg.add_middleware("v1", broken)
            reg.deprecate_version("v1", "2024-01-01", "2999-01-01", "v2")

        client = TestClient(create_app(registry=registry, setup=setup))
        response = client.get("/api/shop/v1/widgets")

        assert response.status_code == 500
        assert response.json()["code"] == "internal_error"
        assert response.headers["x-api-deprecated"] == "true"
        assert response.headers["x-api-successor-version"] == "v2"

    def test_openapi_marks_deprecated(self, client):
        paths = client.get("/openapi.json").json()["paths"]

        assert paths["/api/shop/v1/widgets"]["get"]["deprecated"] is True
        assert "deprecated" not in paths["/api/shop/v2/widgets"]["get"]
        parameters = paths["/api/shop/v2/widgets/{widget_id}"]["get"]["parameters"]
        assert {"name": "widget_id", "in": "path", "required": True, "schema": {}} in parameters


class TestMiddleware:
    def test_short_circuit(self, registry):
        def setup(reg):
            reg.get("v1", "widgets", lambda request: [])
            reg.add_global_middleware(lambda request, meta: error_response("rate_limited", "Slow down", status=429), priority=1)

        client = TestClient(create_app(registry=registry, setup=setup))
        response = client.get("/api/shop/v1/widgets")

        assert response.status_code == 429
        assert response.json()["code"] == "rate_limited"
        assert "x-api-version" not in response.headers

    def test_version_middleware_sees_route_meta(self, registry):
        def tag(request, meta):
            request.attributes["tagged"] = meta.version

        def setup(reg):
            reg.get("v1", "widgets", lambda request: request.get_attributes()["tagged"])
            reg.add_middleware("v1", tag)

        client = TestClient(create_app(registry=registry, setup=setup))

        assert client.get("/api/shop/v1/widgets").json() == {"success": True, "data": "v1"}

    def test_middleware_exception(self, registry):
        def broken(request, meta):
            raise RuntimeError("middleware exploded")

        def setup(reg):
            reg.get("v1", "widgets", lambda request: [])
            reg.add_middleware("v1", broken)

        client = TestClient(create_app(registry=registry, setup=setup))
        response = client.get("/api/shop/v1/widgets")

        assert response.status_code == 500
        assert response.json() == {"code": "internal_error", "message": "Internal server error", "data": {"status": 500}}

    def test_handler_exception(self, client):
        response = client.get("/api/shop/v1/explode")

        assert response.status_code == 500
        assert response.json() == {"code": "internal_error", "message": "handler exploded", "data": {"status": 500}}


class TestIndexes:
    def test_namespace_index(self, client):
        docs = client.get("/api/shop").json()

        assert docs["base_namespace"] == "shop"
        assert list(docs["versions"]) == ["v1", "v2"]
        assert docs["versions"]["v1"]["deprecation_info"]["successor_version"] == "v2"
        assert "/explode" not in docs["versions"]["v2"]["routes"]

    def test_version_index(self, client):
        response = client.get("/api/shop/v2")

        assert response.status_code == 200
        assert response.headers["x-api-version"] == "v2"
        assert response.json()["namespace"] == "shop/v2"

    def test_health(self, client):
        response = client.get("/health")

        assert response.json() == {"status": "healthy", "versions": ["v1", "v2"], "active_versions": ["v2"]}

    def test_discovery_link(self, client):
        response = client.get("/health")

        assert response.headers["link"] == '<http://testserver/api/shop/v1>; rel="service-desc"'
