"""Semver helpers used by conflict detection."""

import re
from typing import Optional

import semantic_version

_FIRST_DIGITS = re.compile(r"(\d+)")
_LEADING_MAJOR = re.compile(r"^v?(\d+)")


def _coerce(version: str) -> Optional[semantic_version.Version]:
    try:
        return semantic_version.Version.coerce(version.strip().lstrip("v"))
    except ValueError:
        return None


def is_potential_version_conflict(requested_range: str, resolved_version: str) -> bool:
    """True when ``resolved_version`` does not satisfy the npm ``requested_range``.

    Unparseable ranges (tags, URLs, workspace: protocols) and unparseable
    versions are never reported as conflicts.
    """
    if not isinstance(requested_range, str) or not isinstance(resolved_version, str):
        return False
    resolved = _coerce(resolved_version)
    if resolved is None:
        return False
    try:
        spec = semantic_version.NpmSpec(requested_range.strip() or "*")
    except ValueError:
        return False
    return not spec.match(resolved)


def is_breaking_version_conflict(requested_range: str, resolved_version: str) -> bool:
    """True when the major of ``resolved_version`` differs from the range's first number."""
    resolved_match = _LEADING_MAJOR.match(resolved_version.strip())
    range_match = _FIRST_DIGITS.search(requested_range)
    if not resolved_match or not range_match:
        return False
    return int(resolved_match.group(1)) != int(range_match.group(1))
