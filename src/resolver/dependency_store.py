"""Per-session record of parent package dependency declarations."""
from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Tuple

from resolver.patterns import NPM_PROTOCOL, split_versioned_package, strip_semver_prefix
from versioning.models import PackageManifest

_NUMERIC = re.compile(r"^\d+(?:\.\d+){0,2}(?:[-+][0-9A-Za-z.\-]+)?$")


def clean_version_range(version_range: str) -> Optional[str]:
    """Reduce a declared range to a concrete version usable as a pin.

    ``^1.2.3`` -> ``1.2.3``; ``>=1.0.0 <2.0.0`` -> ``1.0.0``;
    ``npm:@scope/pkg@2.0.0`` -> ``2.0.0``. Tags, URLs and wildcards give None.
    """
    value = version_range.strip()
    if value.startswith(NPM_PROTOCOL):
        parsed = split_versioned_package(value[len(NPM_PROTOCOL):])
        if not parsed:
            return None
        value = parsed[1]
    tokens = strip_semver_prefix(value).split("||")[0].split()
    if not tokens:
        return None
    value = strip_semver_prefix(tokens[0])
    if not _NUMERIC.match(value):
        return None
    return value


class DependencyStore:
    """Maps ``<package>@<version>`` keys to their cleaned dependency pins."""

    def __init__(self):
        self._parents: Dict[str, Dict[str, str]] = {}
        self._package_sources: Dict[str, str] = {}

    def set_package_source(self, package: str, source: str) -> None:
        self._package_sources[package] = source

    def get_package_source(self, package: str) -> Optional[str]:
        return self._package_sources.get(package)

    def store_package_dependencies(self, package_key: str, manifest: Optional[PackageManifest]) -> Optional[Dict[str, str]]:
        """Record ``dependencies`` then ``peerDependencies``; first declaration wins."""
        if manifest is None:
            return None
        if not manifest.dependencies and not manifest.peer_dependencies:
            return None
        deps: Dict[str, str] = {}
        for declared in (manifest.dependencies, manifest.peer_dependencies):
            for dep, version_range in declared.items():
                if dep in deps:
                    continue
                clean = clean_version_range(version_range)
                if clean:
                    deps[dep] = clean
        self._parents[package_key] = deps
        return deps

    def get_parent_package_deps(self, package_key: str) -> Optional[Dict[str, str]]:
        return self._parents.get(package_key)

    def has_parent(self, package_key: str) -> bool:
        return package_key in self._parents

    def entries(self) -> Iterator[Tuple[str, Dict[str, str]]]:
        return iter(list(self._parents.items()))

    def parents_requiring(self, package_name: str) -> List[Tuple[str, str]]:
        """``(parent, version)`` pairs for every parent that pins ``package_name``."""
        return [
            (parent, deps[package_name])
            for parent, deps in self._parents.items()
            if package_name in deps
        ]
