# -*- coding: utf-8 -*-
"""
Version Manifest Loader

Copyright 2025
SPDX-License-Identifier: Apache-2.0

Reads version metadata (descriptions, changelogs, deprecation schedules) from a
YAML or JSON manifest and applies it to a registry through the regular
registration API.

Example manifest::

    default_version: v2
    versions:
      v1:
        description: First public API
        deprecation:
          date: 2025-01-01
          removal_date: 2026-01-01
          successor: v2
      v2:
        description: Current API
        changelog:
          - Widgets carry a colour
"""

# Standard
from datetime import date
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

# Third-Party
import yaml

# First-Party
from restroute.registry import VersionRegistry
from restroute.utils.url_utils import sanitize_key

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """Raised when a manifest cannot be read or is malformed."""


def _as_text(value: Any) -> Optional[str]:
    """YAML turns bare dates into date objects; the registry stores strings.

    Examples:
        >>> from datetime import date
        >>> _as_text(date(2025, 1, 1)), _as_text(None), _as_text("v2")
        ('2025-01-01', None, 'v2')
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _changelog(version: str, entry: Mapping[str, Any]) -> Optional[List[str]]:
    """Changelog lines of a manifest entry; a single string is one line.

    Examples:
        >>> _changelog("v1", {"changelog": "Initial release"}), _changelog("v1", {"changelog": None}), _changelog("v1", {})
        (['Initial release'], [], None)
    """
    if "changelog" not in entry:
        return None
    changelog = entry["changelog"]
    if changelog is None:
        return []
    if isinstance(changelog, str):
        return [changelog]
    if not isinstance(changelog, list):
        raise ManifestError(f"'changelog' of API version {version} must be a list of lines")
    return [str(line) for line in changelog]


def read_manifest(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a manifest file.

    Args:
        path: ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        Dict[str, Any]: Parsed manifest

    Raises:
        ManifestError: If the file is missing, unparsable or not a mapping
    """
    manifest_path = Path(path)
    if not manifest_path.exists():
        raise ManifestError(f"Version manifest not found: {manifest_path}")

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            if manifest_path.suffix == ".json":
                manifest = json.load(f)
            else:
                manifest = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ManifestError(f"Failed to load version manifest {manifest_path}: {e}") from e

    if manifest is None:
        return {}
    if not isinstance(manifest, dict):
        raise ManifestError(f"Version manifest {manifest_path} must be a mapping")
    return manifest


def apply_manifest(registry: VersionRegistry, manifest: Mapping[str, Any]) -> List[str]:
    """Register and deprecate the versions named in a manifest.

    Args:
        registry: Target registry
        manifest: Parsed manifest

    Returns:
        List[str]: Versions touched, in manifest order

    Raises:
        ManifestError: If the ``versions`` section, a version entry, its
            changelog or its deprecation block is malformed

    Examples:
        >>> registry = VersionRegistry(base_namespace="shop")
        >>> apply_manifest(registry, {"versions": {"v1": {"deprecation": {"date": "2025-01-01", "successor": "v2"}}, "v2": None}})
        ['v1', 'v2']
        >>> registry.get_available_versions(include_deprecated=False)
        ['v2']
    """
    versions = manifest.get("versions") or {}
    if not isinstance(versions, Mapping):
        raise ManifestError("'versions' must map version ids to their settings")

    touched: List[str] = []
    for version, entry in versions.items():
        entry = entry or {}
        if not isinstance(entry, Mapping):
            raise ManifestError(f"Manifest entry for API version {version} must be a mapping")
        version = sanitize_key(version)
        existing = registry.get_version(version)
        description = entry.get("description")
        changelog = _changelog(version, entry)
        deprecation = entry.get("deprecation")
        if deprecation and not isinstance(deprecation, Mapping):
            raise ManifestError(f"'deprecation' of API version {version} must be a mapping")

        registry.describe_version(version, str(description) if description is not None else None, changelog)
        if deprecation:
            registry.deprecate_version(
                version,
                _as_text(deprecation.get("date")) or date.today().isoformat(),
                _as_text(deprecation.get("removal_date")),
                _as_text(deprecation.get("successor")),
            )

        logger.debug(f"Applied manifest entry for {'existing' if existing else 'new'} API version {version}")
        touched.append(version)

    default_version = manifest.get("default_version")
    if default_version:
        registry.default_version = sanitize_key(default_version)

    return touched


def load_manifest(registry: VersionRegistry, path: Union[str, Path]) -> List[str]:
    """Read a manifest file and apply it.

    Args:
        registry: Target registry
        path: Manifest file

    Returns:
        List[str]: Versions touched
    """
    touched = apply_manifest(registry, read_manifest(path))
    logger.info(f"Loaded version manifest {path}: {touched}")
    return touched
