"""Package name, version and sub-path extraction for bare package specifiers."""
from __future__ import annotations

import re
from typing import Iterable, Optional

from resolver.patterns import REGULAR_PACKAGE, SCOPED_PACKAGE, VERSION_SUFFIX


def extract_package_name(url: str, workspace_keys: Optional[Iterable[str]] = None) -> Optional[str]:
    """Return the package a bare specifier belongs to.

    Known workspace keys win, longest first, so alias keys such as
    ``@module_remapping`` resolve even when they do not look like a scope.
    """
    if url.startswith("@") and workspace_keys:
        for key in sorted(workspace_keys, key=len, reverse=True):
            if url == key or url.startswith(f"{key}/") or url.startswith(f"{key}@"):
                return key
    match = SCOPED_PACKAGE.match(url)
    if match:
        return match.group(1)
    match = REGULAR_PACKAGE.match(url)
    if match:
        return match.group(1)
    return None


def extract_version(url: str) -> Optional[str]:
    match = VERSION_SUFFIX.search(url)
    return match.group(1) if match else None


def extract_relative_path(url: str, package_name: str) -> Optional[str]:
    """Path of ``url`` inside ``package_name``, with or without a version segment."""
    escaped = re.escape(package_name)
    match = re.match(rf"^{escaped}@[^/]+/(.+)$", url)
    if match:
        return match.group(1)
    match = re.match(rf"^{escaped}/(.+)$", url)
    if match:
        return match.group(1)
    return None
