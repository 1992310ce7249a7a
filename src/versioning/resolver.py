"""Package version resolution over pluggable, prioritized strategies."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from adapters.io_adapter import IOAdapter
from versioning.models import ResolvedVersion
from versioning.strategies import (
    BaseVersionStrategy,
    LockFileStrategy,
    NpmFetchStrategy,
    ParentDependencyStrategy,
    ResolutionContext,
    WorkspaceResolutionStrategy,
)

logger = logging.getLogger(__name__)

UNRESOLVED_SOURCE = "fetched"


class PackageVersionResolver:
    """Resolve one concrete version for a package name.

    Strategies are consulted highest priority first; the first one that
    returns a version wins. When none does, the result is
    ``ResolvedVersion(None, "fetched")``.
    """

    def __init__(self, io: IOAdapter):
        self.io = io
        self._workspace = WorkspaceResolutionStrategy(io)
        self._lock_file = LockFileStrategy(io)
        self._strategies: List[BaseVersionStrategy] = [
            self._workspace,
            ParentDependencyStrategy(io),
            self._lock_file,
            NpmFetchStrategy(io),
        ]
        self._sort()
        self._initialized = False

    def _sort(self) -> None:
        self._strategies.sort(key=lambda s: s.priority, reverse=True)

    @property
    def strategies(self) -> List[BaseVersionStrategy]:
        return list(self._strategies)

    def add_strategy(self, strategy: BaseVersionStrategy) -> None:
        self._strategies.append(strategy)
        self._sort()
        if self._initialized:
            strategy.initialize()
        logger.debug("Added strategy %s (priority %s)", strategy.name, strategy.priority)

    def remove_strategy(self, name: str) -> bool:
        for idx, strategy in enumerate(self._strategies):
            if strategy.name == name:
                del self._strategies[idx]
                return True
        return False

    def initialize(self) -> None:
        if self._initialized:
            return
        for strategy in self._strategies:
            strategy.initialize()
        self._initialized = True

    def load_workspace_resolutions(self) -> None:
        self._workspace.initialize()

    def get_workspace_resolutions(self) -> Mapping[str, str]:
        return self._workspace.get_all()

    def has_workspace_resolution(self, name: str) -> bool:
        return self._workspace.has(name)

    def get_workspace_resolution(self, name: str) -> Optional[str]:
        return self._workspace.get(name)

    def has_lock_file_version(self, name: str) -> bool:
        self._lock_file.initialize()
        return self._lock_file.has(name)

    def get_lock_file_version(self, name: str) -> Optional[str]:
        self._lock_file.initialize()
        return self._lock_file.get(name)

    def clear_workspace_resolutions(self) -> None:
        self._workspace.clear()
        self._initialized = False

    def clear_lock_file_versions(self) -> None:
        self._lock_file.clear()
        self._initialized = False

    def resolve_version(
        self,
        package_name: str,
        parent_deps: Optional[Mapping[str, str]] = None,
        parent_package: Optional[str] = None,
    ) -> ResolvedVersion:
        self.initialize()
        context = ResolutionContext(package_name, parent_deps, parent_package)
        for strategy in self._strategies:
            if not strategy.can_resolve(context):
                continue
            result = strategy.resolve(context)
            if result is not None and result.version is not None:
                logger.debug(
                    "Resolved %s -> %s (%s)", package_name, result.version, result.source
                )
                return result
        logger.warning("Could not resolve a version for %s", package_name)
        return ResolvedVersion(None, UNRESOLVED_SOURCE)
