# -*- coding: utf-8 -*-
"""Location: ./restroute/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

restroute Configuration.

Settings are read from environment variables (prefixed ``RESTROUTE_``) and an
optional ``.env`` file.

Examples:
    >>> from restroute.config import Settings
    >>> s = Settings(app_slug="my-shop")
    >>> s.app_slug
    'my-shop'
    >>> s.default_version
    'v1'
"""

# Standard
from typing import List, Optional

# Third-Party
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """restroute settings."""

    # Application
    app_name: str = "restroute"
    app_slug: str = "rest-api"
    host: str = "127.0.0.1"
    port: int = 8000

    # Versioned API
    base_namespace: Optional[str] = None
    default_version: str = "v1"
    supported_versions: List[str] = ["v1"]
    rest_prefix: str = "/api"
    site_url: str = "http://localhost:8000"
    version_manifest: Optional[str] = None  # YAML/JSON file with version metadata
    enable_api_discovery: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Tokens and nonces
    jwt_secret_key: str = "change-me-restroute-jwt-signing-secret-key"
    jwt_algorithm: str = "HS256"
    nonce_lifetime_seconds: int = 86400

    model_config = SettingsConfigDict(env_prefix="RESTROUTE_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("rest_prefix")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        """Keep exactly one leading slash and no trailing slash.

        Args:
            v: Raw prefix

        Returns:
            str: Normalized prefix

        Examples:
            >>> Settings(rest_prefix="api/").rest_prefix
            '/api'
            >>> Settings(rest_prefix="/").rest_prefix
            ''
        """
        v = v.strip("/")
        return f"/{v}" if v else ""

    @field_validator("site_url")
    @classmethod
    def _strip_site_url(cls, v: str) -> str:
        """Drop trailing slashes from the site url.

        Args:
            v: Raw site url

        Returns:
            str: Site url without trailing slash
        """
        return v.rstrip("/")


settings = Settings()
