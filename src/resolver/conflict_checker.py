"""Detect mismatches between a package's declared dependencies and the session."""
from __future__ import annotations

import logging
from typing import Optional

from resolver.patterns import ALIAS_PREFIX, TRAILING_VERSION, split_versioned_package
from resolver.session import ResolutionSession
from versioning.models import PackageManifest
from versioning.resolver import PackageVersionResolver
from versioning.semver_utils import is_breaking_version_conflict, is_potential_version_conflict

logger = logging.getLogger(__name__)


class ConflictChecker:
    """Compare declared ranges with the versions the session will actually use.

    A dependency counts as resolved when the session already mapped it. For
    peer dependencies only, workspace and lockfile pins also count; a plain
    dependency that has not been imported yet is skipped.
    """

    def __init__(self, session: ResolutionSession, version_resolver: PackageVersionResolver):
        self.session = session
        self.version_resolver = version_resolver

    def _workspace_version(self, dep: str) -> Optional[str]:
        value = self.version_resolver.get_workspace_resolution(dep)
        if value and value.startswith(ALIAS_PREFIX):
            parsed = split_versioned_package(value[len(ALIAS_PREFIX):])
            return parsed[1] if parsed else None
        return value

    def _session_version(self, dep: str) -> Optional[str]:
        mapped = self.session.get_package_mapping(dep)
        if not mapped:
            return None
        match = TRAILING_VERSION.search(mapped)
        return match.group(1) if match else None

    def _resolved_from(self, dep: str) -> str:
        if self.version_resolver.has_workspace_resolution(dep):
            return "workspace package.json"
        if self.version_resolver.has_lock_file_version(dep):
            return "lock file"
        source = self.session.dependency_store.get_package_source(dep)
        if source and source not in (dep, "workspace"):
            return f"{source}/package.json"
        return "npm registry"

    def check_package_dependencies(self, package_name: str, resolved_version: str, manifest: PackageManifest) -> int:
        """Emit diagnostics for each mismatched dependency; returns how many were new."""
        emitted = 0
        declared = [(dep, rng, False) for dep, rng in manifest.dependencies.items()]
        declared += [(dep, rng, True) for dep, rng in manifest.peer_dependencies.items()]
        for dep, requested_range, peer in declared:
            if self._check_dependency(package_name, resolved_version, dep, requested_range, peer):
                emitted += 1
        return emitted

    def _check_dependency(self, package_name: str, package_version: str, dep: str, requested_range: str, peer: bool) -> bool:
        already_imported = self.session.has_package_mapping(dep)
        if already_imported:
            resolved = self._session_version(dep)
        elif peer:
            resolved = self._workspace_version(dep) or self.version_resolver.get_lock_file_version(dep)
        else:
            return False

        if not resolved or not is_potential_version_conflict(requested_range, resolved):
            return False

        breaking = is_breaking_version_conflict(requested_range, resolved)
        return self.session.warnings.emit_dependency_mismatch(
            package_name,
            package_version,
            dep,
            requested_range,
            resolved,
            peer=peer,
            breaking=breaking,
            resolved_from=self._resolved_from(dep),
            already_imported=already_imported,
        )
