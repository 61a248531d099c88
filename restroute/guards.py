# -*- coding: utf-8 -*-
"""Location: ./restroute/guards.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Reusable permission and nonce guards.

Both return ``True`` on success and a ``RestError`` otherwise, so they can be
returned directly from a permission callback or a middleware.
"""

# Standard
from typing import Union

# First-Party
from restroute.auth import check_nonce, get_current_user
from restroute.request import RestRequest
from restroute.responses import ErrorCode, RestError


def check_permissions(capability: str = "read") -> Union[bool, RestError]:
    """Validate that the current user holds a capability.

    Args:
        capability: Required capability

    Returns:
        bool | RestError: True if allowed, a 403 error if not
    """
    if not get_current_user().can(capability):
        return RestError(ErrorCode.FORBIDDEN, "You do not have permission to access this resource", {"status": 403})
    return True


def verify_nonce(request: RestRequest, action: str, param: str = "_wpnonce") -> Union[bool, RestError]:
    """Validate a nonce carried in a request parameter or ``X-Nonce`` header.

    Args:
        request: Request object
        action: Nonce action
        param: Parameter name containing the nonce

    Returns:
        bool | RestError: True if valid, a 403 error if not
    """
    nonce = request.get_param(param) or request.get_header("x-nonce")

    if not check_nonce(nonce, action):
        return RestError(ErrorCode.NONCE_INVALID, "Invalid nonce", {"status": 403})

    return True
