"""Version resolution strategies, tried in descending priority order.

1. WorkspaceResolutionStrategy (100): root package.json resolutions,
   overrides, ``npm:`` aliases and exact workspace dependencies
2. ParentDependencyStrategy (75): the dependency map of the package
   currently being walked
3. LockFileStrategy (50): yarn.lock or package-lock.json pins
4. NpmFetchStrategy (0): the ``version`` of the published package.json
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from adapters.io_adapter import IOAdapter
from constants import Constants
from resolver.errors import ResolverError
from resolver.patterns import (
    ALIAS_PREFIX,
    EXACT_SEMVER,
    NPM_PROTOCOL,
    is_npm_protocol,
    split_versioned_package,
)
from versioning.lockfile_parser import parse_package_lock, parse_yarn_lock
from versioning.models import PackageManifest, ResolvedVersion

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """Input shared by every strategy for one resolution."""
    package_name: str
    parent_deps: Optional[Mapping[str, str]] = None
    parent_package: Optional[str] = None


class BaseVersionStrategy(ABC):
    """Base class for version resolution strategies."""

    name = "base"
    priority = 0

    def __init__(self, io: IOAdapter):
        self.io = io

    def initialize(self) -> None:
        """Load any data the strategy needs; called before resolution."""

    def can_resolve(self, context: ResolutionContext) -> bool:  # pylint: disable=unused-argument
        return True

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Optional[ResolvedVersion]:
        """Return a version or None when this tier does not apply."""

    def clear(self) -> None:
        """Drop cached data."""


class WorkspaceResolutionStrategy(BaseVersionStrategy):
    """Pins from the root package.json."""

    name = "workspace-resolution"
    priority = 100

    def __init__(self, io: IOAdapter):
        super().__init__(io)
        self._resolutions: Dict[str, str] = {}
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        self._resolutions.clear()
        self._initialized = True
        try:
            if not self.io.exists(Constants.PACKAGE_JSON_FILE):
                return
            manifest = PackageManifest.from_json(self.io.read_file(Constants.PACKAGE_JSON_FILE))
        except (ValueError, ResolverError, OSError) as exc:
            logger.info("No usable workspace package.json: %s", exc)
            return

        for pkg, version in {**manifest.overrides, **manifest.resolutions}.items():
            self._resolutions[pkg] = version
            logger.debug("Workspace resolution: %s -> %s", pkg, version)

        all_deps = {
            **manifest.dependencies,
            **manifest.peer_dependencies,
            **manifest.dev_dependencies,
        }
        for pkg, version_range in all_deps.items():
            if pkg in self._resolutions:
                continue
            if is_npm_protocol(version_range):
                parsed = split_versioned_package(version_range[len(NPM_PROTOCOL):])
                if parsed:
                    real, version = parsed
                    self._resolutions[pkg] = f"{ALIAS_PREFIX}{real}@{version}"
                    logger.debug("npm alias: %s -> %s@%s", pkg, real, version)
            elif EXACT_SEMVER.match(version_range):
                self._resolutions[pkg] = version_range
                logger.debug("Workspace dependency (exact): %s -> %s", pkg, version_range)

    def can_resolve(self, context: ResolutionContext) -> bool:
        return context.package_name in self._resolutions

    def resolve(self, context: ResolutionContext) -> Optional[ResolvedVersion]:
        resolution = self._resolutions.get(context.package_name)
        if resolution is None:
            return None
        if resolution.startswith(ALIAS_PREFIX):
            parsed = split_versioned_package(resolution[len(ALIAS_PREFIX):])
            if parsed:
                real, version = parsed
                return ResolvedVersion(version, f"{ALIAS_PREFIX}{context.package_name}→{real}")
        return ResolvedVersion(resolution, "workspace-resolution")

    def clear(self) -> None:
        self._resolutions.clear()
        self._initialized = False

    def has(self, name: str) -> bool:
        return name in self._resolutions

    def get(self, name: str) -> Optional[str]:
        return self._resolutions.get(name)

    def get_all(self) -> Mapping[str, str]:
        return dict(self._resolutions)


class ParentDependencyStrategy(BaseVersionStrategy):
    """Version declared by the parent package currently being walked."""

    name = "parent-dependency"
    priority = 75

    def can_resolve(self, context: ResolutionContext) -> bool:
        return bool(context.parent_deps) and context.package_name in context.parent_deps

    def resolve(self, context: ResolutionContext) -> Optional[ResolvedVersion]:
        if not context.parent_deps or context.package_name not in context.parent_deps:
            return None
        version = context.parent_deps[context.package_name]
        source = f"parent-{context.parent_package}" if context.parent_package else "parent"
        return ResolvedVersion(version, source)


class LockFileStrategy(BaseVersionStrategy):
    """Exact pins from yarn.lock, falling back to package-lock.json."""

    name = "lock-file"
    priority = 50

    def __init__(self, io: IOAdapter):
        super().__init__(io)
        self._versions: Dict[str, str] = {}
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        for filename, parser in (
            (Constants.YARN_LOCK_FILE, parse_yarn_lock),
            (Constants.PACKAGE_LOCK_FILE, parse_package_lock),
        ):
            try:
                if not self.io.exists(filename):
                    continue
                self._versions = parser(self.io.read_file(filename))
            except (ResolverError, OSError) as exc:
                logger.warning("Failed to read %s: %s", filename, exc)
                continue
            logger.debug("Loaded %d versions from %s", len(self._versions), filename)
            return

    def can_resolve(self, context: ResolutionContext) -> bool:
        return context.package_name in self._versions

    def resolve(self, context: ResolutionContext) -> Optional[ResolvedVersion]:
        version = self._versions.get(context.package_name)
        if version is None:
            return None
        return ResolvedVersion(version, "lock-file")

    def clear(self) -> None:
        self._versions.clear()
        self._initialized = False

    def has(self, name: str) -> bool:
        return name in self._versions

    def get(self, name: str) -> Optional[str]:
        return self._versions.get(name)


class NpmFetchStrategy(BaseVersionStrategy):
    """Latest published version, read from ``<name>/package.json``."""

    name = "npm-fetch"
    priority = 0

    def resolve(self, context: ResolutionContext) -> Optional[ResolvedVersion]:
        url = f"{context.package_name}/{Constants.PACKAGE_JSON_FILE}"
        try:
            manifest = PackageManifest.from_json(self.io.fetch(url))
        except (ValueError, ResolverError, OSError) as exc:
            logger.warning("Failed to fetch package.json for %s: %s", context.package_name, exc)
            return None
        if not manifest.version:
            return None
        return ResolvedVersion(manifest.version, "package-json")
