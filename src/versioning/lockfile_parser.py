"""Lockfile parsers for the npm ecosystem (package-lock.json, yarn.lock).

Each parser takes the lockfile text and returns a mapping of package name to
the exact version pinned for it. Parsing is best effort: malformed input
yields whatever could be read, never an exception.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import yaml
from yarnlock import yarnlock_parse

logger = logging.getLogger(__name__)

# "@scope/name@npm:^1.0.0" -> "@scope/name"
_YARN_PACKAGE = re.compile(r'^"?(@?[^"@\s]+(?:/[^"@\s]+)?)@')


def _name_from_lock_path(pkg_path: str) -> str:
    """``node_modules/a/node_modules/@s/b`` -> ``@s/b``."""
    path_parts = pkg_path.split("/")
    if len(path_parts) >= 2 and path_parts[-2].startswith("@"):
        return f"{path_parts[-2]}/{path_parts[-1]}"
    return path_parts[-1]


def parse_package_lock(content: str) -> Dict[str, str]:
    """Extract name -> version pins from package-lock.json text.

    Supports lockfileVersion 1 (nested ``dependencies``) and 2/3 (flat
    ``packages``). Top-level entries win over nested duplicates.

    Args:
        content: package-lock.json text

    Returns:
        Mapping of package name to pinned version
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Failed to parse package-lock.json: %s", e)
        return {}
    if not isinstance(data, dict):
        return {}

    versions: Dict[str, str] = {}

    def _extract_from_deps(deps: Any) -> None:
        """Walk the v1 nested dependencies structure, one level at a time."""
        level = [deps]
        while level:
            nested = []
            for current in level:
                if not isinstance(current, dict):
                    continue
                for pkg_name, pkg_info in current.items():
                    if not isinstance(pkg_info, dict):
                        continue
                    version = pkg_info.get("version")
                    if isinstance(version, str) and pkg_name not in versions:
                        versions[pkg_name] = version
                    nested.append(pkg_info.get("dependencies"))
            level = nested

    packages = data.get("packages")
    if isinstance(packages, dict):
        # Sort shallow paths first so hoisted copies take precedence
        for pkg_path in sorted(packages, key=lambda p: p.count("node_modules/")):
            pkg_info = packages[pkg_path]
            if not pkg_path or not isinstance(pkg_info, dict):
                continue
            version = pkg_info.get("version")
            if not isinstance(version, str):
                continue
            name = pkg_info.get("name") if isinstance(pkg_info.get("name"), str) else _name_from_lock_path(pkg_path)
            if name and name not in versions:
                versions[name] = version

    _extract_from_deps(data.get("dependencies"))
    return versions


def _yarn_key_name(spec: str) -> Optional[str]:
    match = _YARN_PACKAGE.match(spec.strip())
    return match.group(1) if match else None


def _load_yarn_entries(content: str) -> Dict[str, Any]:
    """Parse yarn.lock text into its ``key -> fields`` mapping.

    Berry lockfiles (``__metadata`` block) are YAML; classic v1 lockfiles go
    through ``yarnlock``.
    """
    if "__metadata:" in content:
        parsed = yaml.safe_load(content)
    else:
        parsed = yarnlock_parse(content)
    return parsed if isinstance(parsed, dict) else {}


def parse_yarn_lock(content: str) -> Dict[str, str]:
    """Extract name -> version pins from yarn.lock text.

    Handles the classic v1 format (``version "x.y.z"``) and the berry format
    (``version: x.y.z``); the first block for a name wins.

    Args:
        content: yarn.lock text

    Returns:
        Mapping of package name to pinned version
    """
    if not content.strip():
        return {}
    try:
        entries = _load_yarn_entries(content)
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Failed to parse yarn.lock: %s", e)
        return {}

    versions: Dict[str, str] = {}
    for pkg_key, pkg_info in entries.items():
        if not isinstance(pkg_key, str) or pkg_key == "__metadata" or not isinstance(pkg_info, dict):
            continue
        version = pkg_info.get("version")
        if version is None:
            continue
        # multi-spec keys: "a@^1.0.0, a@^1.2.0"
        for spec in pkg_key.split(","):
            name = _yarn_key_name(spec)
            if name:
                versions.setdefault(name, str(version))
    return versions
