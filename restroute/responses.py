# -*- coding: utf-8 -*-
"""Location: ./restroute/responses.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Response and error objects.

``RestResponse`` and ``RestError`` are the only two values the pipeline and
its middleware recognize as results. Anything else returned by a middleware
means "continue", anything else returned by a handler gets wrapped into a
success envelope.

Examples:
    >>> ok = success_response({"id": 1}, message="done")
    >>> ok.status, ok.data
    (200, {'success': True, 'data': {'id': 1}, 'message': 'done'})
    >>> err = error_response("bad_thing", "Bad thing", status=422)
    >>> err.status, err.to_dict()
    (422, {'code': 'bad_thing', 'message': 'Bad thing', 'data': {'status': 422}})
"""

# Standard
from typing import Any, Dict, Mapping, Optional


class ErrorCode:
    """Stable error codes emitted by the routing layer."""

    ROUTE_NOT_FOUND = "rest_route_not_found"
    VERSION_REMOVED = "api_version_removed"
    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_CALLBACK = "invalid_callback"
    INTERNAL_ERROR = "internal_error"
    FORBIDDEN = "rest_forbidden"
    NONCE_INVALID = "rest_nonce_invalid"
    GENERIC = "error"


class RestResponse:
    """A response body with status and headers."""

    def __init__(self, data: Any = None, status: int = 200, headers: Optional[Mapping[str, str]] = None):
        self.data = data
        self.status = status
        self.headers: Dict[str, str] = dict(headers or {})

    def header(self, name: str, value: str, replace: bool = True) -> None:
        """Set a header.

        Args:
            name: Header name
            value: Header value
            replace: When False, append to an existing value with ``, ``

        Examples:
            >>> r = RestResponse()
            >>> r.header("Vary", "Origin")
            >>> r.header("Vary", "Accept", replace=False)
            >>> r.get_headers()
            {'Vary': 'Origin, Accept'}
        """
        if not replace and name in self.headers:
            self.headers[name] = f"{self.headers[name]}, {value}"
        else:
            self.headers[name] = value

    def get_headers(self) -> Dict[str, str]:
        """Return a copy of the headers.

        Returns:
            Dict[str, str]: Headers
        """
        return dict(self.headers)

    def set_status(self, status: int) -> None:
        self.status = status

    def to_dict(self) -> Any:
        return self.data

    def __repr__(self) -> str:
        return f"RestResponse(status={self.status}, data={self.data!r})"


class RestError:
    """An error result: code, human readable message and a data mapping.

    The HTTP status lives in ``data["status"]``.
    """

    def __init__(self, code: str, message: str, data: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.data: Dict[str, Any] = dict(data or {})
        self.headers: Dict[str, str] = {}

    @property
    def status(self) -> int:
        """HTTP status carried in the error data.

        Returns:
            int: Status, 500 when none was given

        Examples:
            >>> RestError("x", "y").status
            500
            >>> RestError("x", "y", {"status": 404}).status
            404
        """
        return int(self.data.get("status", 500))

    def header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def get_headers(self) -> Dict[str, str]:
        return dict(self.headers)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data}

    def __repr__(self) -> str:
        return f"RestError(code={self.code!r}, status={self.status}, message={self.message!r})"


def is_result(value: Any) -> bool:
    """Check whether a value terminates a middleware chain.

    Args:
        value: Any middleware return value

    Returns:
        bool: True for ``RestResponse`` and ``RestError`` instances

    Examples:
        >>> is_result(RestResponse()), is_result(RestError("a", "b"))
        (True, True)
        >>> is_result(None), is_result(False), is_result({"error": "x"})
        (False, False, False)
    """
    return isinstance(value, (RestResponse, RestError))


def success_response(data: Any = None, message: str = "", status: int = 200) -> RestResponse:
    """Create a standardized success response.

    Args:
        data: Response data
        message: Optional message, only present in the envelope when non-empty
        status: HTTP status code

    Returns:
        RestResponse: ``{"success": True, "data": data[, "message": message]}``

    Examples:
        >>> success_response([1, 2]).data
        {'success': True, 'data': [1, 2]}
        >>> success_response(status=201).status
        201
    """
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return RestResponse(body, status)


def error_response(code: str, message: str, data: Any = None, status: int = 400) -> RestError:
    """Create a standardized error.

    Args:
        code: Error code
        message: Error message
        data: Additional error data, stored under ``data["data"]``
        status: HTTP status code

    Returns:
        RestError: Error value

    Examples:
        >>> error_response("oops", "Oops", data={"field": "name"}).to_dict()
        {'code': 'oops', 'message': 'Oops', 'data': {'status': 400, 'data': {'field': 'name'}}}
    """
    error_data: Dict[str, Any] = {"status": status}
    if data is not None:
        error_data["data"] = data
    return RestError(code, message, error_data)


def format_response(result: Any) -> Any:
    """Normalize raw handler output.

    Args:
        result: Whatever the route callback returned

    Returns:
        RestResponse | RestError: Normalized result

    Examples:
        >>> format_response({"error": "Nope", "code": "nope", "status": 409}).to_dict()
        {'code': 'nope', 'message': 'Nope', 'data': {'status': 409}}
        >>> format_response({"error": "Nope"}).code, format_response({"error": "Nope"}).status
        ('error', 400)
        >>> format_response({"name": "foo"}).data
        {'success': True, 'data': {'name': 'foo'}}
    """
    if is_result(result):
        return result

    if isinstance(result, Mapping) and result.get("error") is not None:
        return RestError(
            result.get("code") or ErrorCode.GENERIC,
            str(result["error"]),
            {"status": result.get("status") or 400},
        )

    return success_response(result, status=200)
