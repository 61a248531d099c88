# -*- coding: utf-8 -*-
"""Location: ./restroute/middleware/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

HTTP middleware for restroute.

Starlette middleware wrapped around the FastAPI application, such as API
discovery. Route-level middleware chains live in ``restroute.chain``.
"""
