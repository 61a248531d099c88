# -*- coding: utf-8 -*-
"""Location: ./restroute/auth.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Current user resolution, access tokens and nonces.

The transport resolves the caller from an ``Authorization: Bearer <jwt>``
header and stores it in a context variable for the duration of the request.
Nonces are short-lived signed tokens bound to an action and a user id.
"""

# Standard
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, FrozenSet, Iterable, Optional

# Third-Party
import jwt

# First-Party
from restroute.config import settings

logger = logging.getLogger(__name__)

# Allowed JWT algorithms (never include 'none')
ALLOWED_ALGORITHMS = ["HS256", "HS384", "HS512"]

NONCE_TOKEN_TYPE = "nonce"
ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity with its capabilities.

    Examples:
        >>> CurrentUser("7", frozenset({"read"})).can("read")
        True
        >>> ANONYMOUS.can("read"), ANONYMOUS.is_authenticated
        (False, False)
    """

    id: str = ""
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


ANONYMOUS = CurrentUser()

_current_user: ContextVar[CurrentUser] = ContextVar("restroute_current_user", default=ANONYMOUS)


def get_current_user() -> CurrentUser:
    return _current_user.get()


def set_current_user(user: CurrentUser) -> Token:
    """Bind the user to the current context.

    Args:
        user: Resolved caller

    Returns:
        Token: Reset token for ``reset_current_user``
    """
    return _current_user.set(user)


def reset_current_user(token: Token) -> None:
    _current_user.reset(token)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: str, capabilities: Iterable[str] = (), expires_in: Optional[timedelta] = None) -> str:
    """Issue a bearer token understood by ``resolve_user``.

    Args:
        user_id: Subject
        capabilities: Capabilities granted to the subject
        expires_in: Lifetime, one hour by default

    Returns:
        str: Encoded JWT
    """
    now = _now()
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "caps": sorted(set(capabilities)),
        "typ": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + (expires_in or timedelta(hours=1))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _decode(token: str) -> Dict[str, Any]:
    header = jwt.get_unverified_header(token)
    if header.get("alg") not in ALLOWED_ALGORITHMS:
        raise jwt.InvalidAlgorithmError(f"Algorithm {header.get('alg')} not allowed")
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm], options={"require": ["exp", "sub"]})


def resolve_user(authorization: Optional[str]) -> CurrentUser:
    """Resolve the caller from an Authorization header value.

    Invalid or missing tokens resolve to the anonymous user.

    Args:
        authorization: Raw ``Authorization`` header

    Returns:
        CurrentUser: Caller

    Examples:
        >>> resolve_user(None) is ANONYMOUS
        True
        >>> resolve_user("Bearer not-a-token") is ANONYMOUS
        True
        >>> resolve_user("Bearer " + create_access_token("42", ["read"])).id
        '42'
    """
    if not authorization or not authorization.startswith("Bearer "):
        return ANONYMOUS

    try:
        payload = _decode(authorization[len("Bearer ") :].strip())
    except jwt.PyJWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return ANONYMOUS

    if payload.get("typ") != ACCESS_TOKEN_TYPE:
        return ANONYMOUS
    return CurrentUser(id=str(payload["sub"]), capabilities=frozenset(payload.get("caps", [])))


def create_nonce(action: str, user_id: Optional[str] = None) -> str:
    """Issue a nonce for an action.

    Args:
        action: Action the nonce protects
        user_id: Owner; defaults to the current user

    Returns:
        str: Encoded nonce
    """
    now = _now()
    payload = {
        "sub": user_id if user_id is not None else get_current_user().id,
        "act": action,
        "typ": NONCE_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.nonce_lifetime_seconds)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def check_nonce(nonce: Optional[str], action: str, user_id: Optional[str] = None) -> bool:
    """Check a nonce against an action and user.

    Args:
        nonce: Nonce from the request
        action: Expected action
        user_id: Expected owner; defaults to the current user

    Returns:
        bool: True when the nonce is valid, unexpired and bound to both

    Examples:
        >>> check_nonce(create_nonce("delete-widget", "3"), "delete-widget", "3")
        True
        >>> check_nonce(create_nonce("delete-widget", "3"), "edit-widget", "3")
        False
        >>> check_nonce(None, "delete-widget", "3")
        False
    """
    if not nonce or not isinstance(nonce, str):
        return False

    try:
        payload = _decode(nonce)
    except jwt.PyJWTError as e:
        logger.debug(f"Invalid nonce for action {action}: {e}")
        return False

    owner = user_id if user_id is not None else get_current_user().id
    return payload.get("typ") == NONCE_TOKEN_TYPE and payload.get("act") == action and payload.get("sub") == owner
