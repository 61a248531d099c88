# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared fixtures for restroute tests.
"""

# Standard
from typing import Any, Optional

# Third-Party
import pytest

# First-Party
from restroute.models import RouteMeta
from restroute.pipeline import RequestPipeline, ROUTE_META_ATTRIBUTE
from restroute.registry import VersionRegistry
from restroute.request import RestRequest


@pytest.fixture
def registry():
    """Create an empty registry under the 'shop' namespace."""
    return VersionRegistry(base_namespace="shop", default_version="v1")


@pytest.fixture
def pipeline(registry):
    """Create a pipeline bound to the test registry."""
    return RequestPipeline(registry)


@pytest.fixture
def make_request(registry):
    """Build requests with route metadata attached, the way the transport does."""

    def _make(version: str, path: str, method: str = "GET", query: Optional[dict] = None, **kwargs: Any) -> RestRequest:
        record = registry.get_version(version)
        request = RestRequest(method, f"/{registry.get_full_namespace(version)}{path}", query_params=query, **kwargs)
        request.attributes[ROUTE_META_ATTRIBUTE] = RouteMeta(version=version, route_config=record.routes[path], version_record=record, path=path)
        return request

    return _make
