# -*- coding: utf-8 -*-
"""Location: ./restroute/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

restroute - versioned REST routing layer.

Registers named API versions, attaches routes and ordered middleware chains to
each version and dispatches requests through a deterministic pipeline.
"""

__version__ = "0.3.0"
