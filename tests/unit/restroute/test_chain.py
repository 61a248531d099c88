# -*- coding: utf-8 -*-
"""Location: ./tests/unit/restroute/test_chain.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Middleware chain tests.
"""

# Standard
from unittest.mock import Mock

# Third-Party
import pytest

# First-Party
from restroute.chain import DEFAULT_PRIORITY, MiddlewareChain
from restroute.responses import RestError, RestResponse


def recorder(calls, name, result=None):
    def middleware(request, route_meta):
        calls.append(name)
        return result

    middleware.__name__ = name
    return middleware


class TestOrdering:
    """Buckets run in ascending priority, insertion order within a bucket."""

    def test_priority_then_insertion_order(self):
        calls = []
        chain = MiddlewareChain()
        chain.add(recorder(calls, "late"), priority=20)
        chain.add(recorder(calls, "first"), priority=5)
        chain.add(recorder(calls, "default-a"))
        chain.add(recorder(calls, "second"), priority=5)
        chain.add(recorder(calls, "default-b"), priority=DEFAULT_PRIORITY)

        assert chain.apply(Mock(), Mock()) is None
        assert calls == ["first", "second", "default-a", "default-b", "late"]
        assert chain.priorities() == [5, 10, 20]

    def test_negative_priority_runs_first(self):
        calls = []
        chain = MiddlewareChain()
        chain.add(recorder(calls, "zero"), priority=0)
        chain.add(recorder(calls, "negative"), priority=-5)

        chain.apply(None, None)

        assert calls == ["negative", "zero"]

    def test_iteration_and_size(self):
        chain = MiddlewareChain()
        assert not chain
        assert len(chain) == 0

        a, b = Mock(return_value=None), Mock(return_value=None)
        chain.add(b, 2)
        chain.add(a, 1)

        assert chain
        assert len(chain) == 2
        assert list(chain) == [a, b]
        assert chain.bucket(1) == [a]
        assert chain.bucket(99) == []

    def test_rejects_non_callable(self):
        chain = MiddlewareChain()
        with pytest.raises(TypeError, match="callable"):
            chain.add(42)
        assert len(chain) == 0


class TestShortCircuit:
    """The first response or error ends the chain."""

    @pytest.mark.parametrize("result", [RestResponse({"cached": True}), RestError("rate_limited", "Slow down", {"status": 429})])
    def test_result_stops_chain(self, result):
        calls = []
        chain = MiddlewareChain()
        chain.add(recorder(calls, "a"), 1)
        chain.add(recorder(calls, "b", result), 2)
        chain.add(recorder(calls, "c"), 3)

        assert chain.apply(None, None) is result
        assert calls == ["a", "b"]

    @pytest.mark.parametrize("value", [None, True, False, 0, "", {"error": "ignored"}, [1]])
    def test_other_values_continue(self, value):
        calls = []
        chain = MiddlewareChain()
        chain.add(recorder(calls, "a", value))
        chain.add(recorder(calls, "b"))

        assert chain.apply(None, None) is None
        assert calls == ["a", "b"]

    def test_arguments_forwarded(self):
        request, meta = object(), object()
        middleware = Mock(return_value=None)
        chain = MiddlewareChain()
        chain.add(middleware)

        chain.apply(request, meta)

        middleware.assert_called_once_with(request, meta)

    def test_exceptions_propagate(self):
        chain = MiddlewareChain()
        chain.add(Mock(side_effect=RuntimeError("boom")))

        with pytest.raises(RuntimeError, match="boom"):
            chain.apply(None, None)
