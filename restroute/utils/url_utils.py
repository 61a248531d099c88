# Standard
import re
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# Third-Party
from fastapi import Request

_KEY_DISALLOWED = re.compile(r"[^a-z0-9_\-]")


def sanitize_key(key: str) -> str:
    """
    Lower-case a key and strip everything except ``a-z``, ``0-9``, ``_`` and ``-``.

    Args:
        key (str): Raw key.

    Returns:
        str: Sanitized key.

    Examples:
        >>> sanitize_key("V2 Beta!")
        'v2beta'
        >>> sanitize_key("my_shop-api")
        'my_shop-api'
    """
    return _KEY_DISALLOWED.sub("", str(key).lower())


def add_query_args(url: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Merge query arguments into a URL, replacing existing keys.

    Args:
        url (str): Base URL, possibly carrying a query string.
        params (Mapping[str, Any]): Arguments to add. ``None`` values are dropped.

    Returns:
        str: URL with the merged query string.

    Examples:
        >>> add_query_args("http://x/api?a=1", {"b": 2, "a": 3})
        'http://x/api?a=3&b=2'
        >>> add_query_args("http://x/api", {})
        'http://x/api'
    """
    if not params:
        return url
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))
    for key, value in params.items():
        if value is None:
            query.pop(key, None)
        elif isinstance(value, bool):
            query[key] = "1" if value else "0"
        else:
            query[key] = str(value)
    return urlunparse(parsed._replace(query=urlencode(query)))


def rest_url(site_url: str, rest_prefix: str, path: str = "") -> str:
    """
    Build an absolute REST URL.

    Args:
        site_url (str): Site root, without trailing slash.
        rest_prefix (str): Mount prefix such as ``/api``.
        path (str): Namespace and route.

    Returns:
        str: Absolute URL.

    Examples:
        >>> rest_url("http://localhost:8000", "/api", "shop/v1/widgets")
        'http://localhost:8000/api/shop/v1/widgets'
        >>> rest_url("http://localhost:8000/", "", "/shop/v1")
        'http://localhost:8000/shop/v1'
    """
    path = path.lstrip("/")
    return f"{site_url.rstrip('/')}{rest_prefix}/{path}"


def get_protocol_from_request(request: Request) -> str:
    """
    Return "https" or "http" based on:
     1) X-Forwarded-Proto (if set by a proxy)
     2) request.url.scheme  (e.g. when Gunicorn/Uvicorn is terminating TLS)

    Args:
        request (Request): The FastAPI request object.

    Returns:
        str: The protocol used for the request, either "http" or "https".
    """
    forwarded = request.headers.get("x-forwarded-proto")
    if forwarded:
        # may be a comma-separated list; take the first
        return forwarded.split(",")[0].strip()

    return request.url.scheme


def get_base_url(request: Request) -> str:
    """
    Base URL of the incoming request with the protocol seen by the client.

    Args:
        request (Request): The FastAPI request object.

    Returns:
        str: The base URL with the correct protocol, without trailing slash.
    """
    parsed = urlparse(str(request.base_url))
    proto = get_protocol_from_request(request)
    return urlunparse(parsed._replace(scheme=proto)).rstrip("/")
