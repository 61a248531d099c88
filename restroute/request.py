# -*- coding: utf-8 -*-
"""Location: ./restroute/request.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Transport-neutral request object.

Parameters come from several sources. Lookups walk them in a fixed order
(url, json, body, query, defaults) and return the first hit, so a path
parameter always wins over a query string value of the same name.
"""

# Standard
from typing import Any, Dict, List, Mapping, Optional

PARAM_ORDER: List[str] = ["url", "json", "body", "query", "defaults"]


class RestRequest:
    """A single API request as seen by the pipeline.

    Examples:
        >>> req = RestRequest("GET", "/shop/v1/widgets", query_params={"id": "42"}, url_params={"id": "7"})
        >>> req.get_param("id")
        '7'
        >>> req.get_param("missing") is None
        True
        >>> req.set_param("id", 8)
        >>> req.get_param("id"), req.get_query_params()
        (8, {'id': '42'})
    """

    def __init__(
        self,
        method: str = "GET",
        route: str = "",
        query_params: Optional[Mapping[str, Any]] = None,
        body_params: Optional[Mapping[str, Any]] = None,
        json_params: Optional[Mapping[str, Any]] = None,
        url_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ):
        self.method = method.upper()
        self.route = route
        self.headers: Dict[str, str] = {k.lower(): v for k, v in (headers or {}).items()}
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self._params: Dict[str, Dict[str, Any]] = {
            "url": dict(url_params or {}),
            "json": dict(json_params or {}),
            "body": dict(body_params or {}),
            "query": dict(query_params or {}),
            "defaults": {},
        }

    def get_param(self, name: str) -> Any:
        """Return a parameter from the first source that has it.

        Args:
            name: Parameter name

        Returns:
            Any: Value, or None when no source carries it
        """
        for source in PARAM_ORDER:
            if name in self._params[source]:
                return self._params[source][name]
        return None

    def has_param(self, name: str) -> bool:
        return any(name in self._params[source] for source in PARAM_ORDER)

    def set_param(self, name: str, value: Any) -> None:
        """Replace a parameter in the source it was read from.

        Unknown parameters are added to the first source.

        Args:
            name: Parameter name
            value: New value
        """
        for source in PARAM_ORDER:
            if name in self._params[source]:
                self._params[source][name] = value
                return
        self._params[PARAM_ORDER[0]][name] = value

    def get_params(self) -> Dict[str, Any]:
        """Merged view of all parameters, earlier sources winning.

        Returns:
            Dict[str, Any]: Parameters
        """
        merged: Dict[str, Any] = {}
        for source in reversed(PARAM_ORDER):
            merged.update(self._params[source])
        return merged

    def get_url_params(self) -> Dict[str, Any]:
        return dict(self._params["url"])

    def get_query_params(self) -> Dict[str, Any]:
        return dict(self._params["query"])

    def get_body_params(self) -> Dict[str, Any]:
        return dict(self._params["body"])

    def get_json_params(self) -> Dict[str, Any]:
        return dict(self._params["json"])

    def get_default_params(self) -> Dict[str, Any]:
        return dict(self._params["defaults"])

    def set_default_params(self, defaults: Mapping[str, Any]) -> None:
        self._params["defaults"] = dict(defaults)

    def get_header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup.

        Args:
            name: Header name

        Returns:
            Optional[str]: Header value

        Examples:
            >>> RestRequest(headers={"X-Token": "abc"}).get_header("x-token")
            'abc'
        """
        return self.headers.get(name.lower())

    def get_attributes(self) -> Dict[str, Any]:
        return self.attributes

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self.attributes = dict(attributes)

    def __repr__(self) -> str:
        return f"RestRequest(method={self.method!r}, route={self.route!r})"
