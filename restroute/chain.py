# -*- coding: utf-8 -*-
"""Location: ./restroute/chain.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Priority-bucketed middleware chains.

A middleware is any callable taking ``(request, route_meta)``. Buckets are
keyed by integer priority (lower runs earlier) and kept sorted on every
insert, so dispatch never sorts.
"""

# Standard
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

# First-Party
from restroute.responses import is_result

logger = logging.getLogger(__name__)

Middleware = Callable[[Any, Any], Any]

DEFAULT_PRIORITY = 10


class MiddlewareChain:
    """Ordered middleware buckets with short-circuit evaluation.

    Examples:
        >>> chain = MiddlewareChain()
        >>> chain.add(lambda r, m: None, priority=20)
        >>> chain.add(lambda r, m: None, priority=5)
        >>> chain.priorities()
        [5, 20]
        >>> len(chain)
        2
    """

    def __init__(self):
        self._buckets: Dict[int, List[Middleware]] = {}

    def add(self, middleware: Middleware, priority: int = DEFAULT_PRIORITY) -> None:
        """Append a middleware to the bucket for ``priority``.

        Args:
            middleware: Callable ``(request, route_meta) -> Any``
            priority: Lower values run earlier

        Raises:
            TypeError: If ``middleware`` is not callable
        """
        if not callable(middleware):
            raise TypeError(f"Middleware must be callable, got {type(middleware).__name__}")

        self._buckets.setdefault(int(priority), []).append(middleware)
        self._buckets = dict(sorted(self._buckets.items()))

    def apply(self, request: Any, route_meta: Any) -> Optional[Any]:
        """Run the chain until a middleware returns a response or an error.

        Args:
            request: Request being dispatched
            route_meta: RouteMeta resolved for the request

        Returns:
            RestResponse | RestError | None: The short-circuit result, or None when every middleware let the request through
        """
        for priority, bucket in self._buckets.items():
            for middleware in bucket:
                result = middleware(request, route_meta)
                if is_result(result):
                    logger.debug(f"Middleware {getattr(middleware, '__name__', middleware)!s} at priority {priority} short-circuited")
                    return result
        return None

    def priorities(self) -> List[int]:
        return list(self._buckets)

    def bucket(self, priority: int) -> List[Middleware]:
        return list(self._buckets.get(priority, []))

    def __iter__(self) -> Iterator[Middleware]:
        """Iterate middleware in execution order."""
        for bucket in self._buckets.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())

    def __bool__(self) -> bool:
        return bool(self._buckets)
