"""Map package names to versioned namespaces and persist their manifests."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from constants import Constants
from resolver.conflict_checker import ConflictChecker
from resolver.content_fetcher import ContentFetcher
from resolver.errors import VersionMismatchError
from resolver.patterns import ALIAS_PREFIX, ALIAS_RESOLUTION, TRAILING_VERSION, split_versioned_package
from resolver.session import ResolutionSession
from versioning.models import PackageManifest, ResolvedVersion

logger = logging.getLogger(__name__)

WORKSPACE_SOURCES = ("workspace-resolution", "lock-file")


def version_satisfies_request(expected: str, fetched: str) -> bool:
    """True when ``fetched`` agrees with every dotted component of ``expected``.

    ``5`` accepts ``5.x.y``, ``5.0`` accepts ``5.0.y`` and ``5.0.0`` must
    match exactly.
    """
    if expected == fetched:
        return True
    expected_parts = expected.split(".")
    fetched_parts = fetched.split(".")
    if len(expected_parts) > len(fetched_parts):
        return False
    return all(e == f for e, f in zip(expected_parts, fetched_parts))


def manifest_path(versioned_package: str) -> str:
    return f"{Constants.DEPS_NPM_DIR}{versioned_package}/{Constants.PACKAGE_JSON_FILE}"


class PackageMapper:
    """Turn ``<name>`` into ``<name>@<version>`` once per session.

    Besides the ``__PKG__<name>`` mapping it persists the package's real
    package.json under the npm cache, records its dependencies as parent
    context for transitive imports and runs the conflict checks.
    """

    def __init__(
        self,
        session: ResolutionSession,
        fetcher: ContentFetcher,
        conflict_checker: ConflictChecker,
        resolve_package_version: Callable[[str], ResolvedVersion],
    ):
        self.session = session
        self.fetcher = fetcher
        self.conflict_checker = conflict_checker
        self.resolve_package_version = resolve_package_version

    @property
    def dependency_store(self):
        return self.session.dependency_store

    def fetch_and_map_package(self, package_name: str) -> Optional[str]:
        """Resolve and cache the version of ``package_name``.

        Returns the ``name@version`` mapping, or None when no version could
        be determined. An existing mapping is returned untouched.
        """
        existing = self.session.get_package_mapping(package_name)
        if existing:
            return existing

        result = self.resolve_package_version(package_name)
        if not result.resolved:
            return None

        actual_name = package_name
        if result.source.startswith(ALIAS_PREFIX):
            match = ALIAS_RESOLUTION.match(result.source)
            if match:
                actual_name = match.group(1)
                logger.info("Using real package name: %s -> %s", package_name, actual_name)

        versioned = f"{actual_name}@{result.version}"
        self.session.set_package_mapping(package_name, versioned)
        source = "workspace" if result.source in WORKSPACE_SOURCES else package_name
        self.dependency_store.set_package_source(package_name, source)
        logger.info("Mapped %s -> %s (source: %s)", package_name, versioned, result.source)

        self._check_package_dependencies(actual_name, result.version)
        return versioned

    def _check_package_dependencies(self, package_name: str, version: str) -> None:
        versioned = f"{package_name}@{version}"
        try:
            manifest = self._load_manifest(versioned, exact=True)
        except OSError as exc:
            logger.info("Could not check dependencies for %s: %s", versioned, exc)
            return
        if manifest is None:
            return
        self.store_dependencies(versioned, manifest)
        self.conflict_checker.check_package_dependencies(package_name, version, manifest)

    def ensure_package_json_saved(self, versioned_package: str) -> None:
        """Persist the manifest of an explicitly versioned package once."""
        if self.fetcher.cache_enabled and self.dependency_store.has_parent(versioned_package):
            return
        try:
            manifest = self._load_manifest(versioned_package, exact=False)
        except OSError as exc:
            logger.warning("Failed to fetch package.json for %s: %s", versioned_package, exc)
            return
        if manifest is not None:
            self.store_dependencies(versioned_package, manifest)

    def load_package_context(self, context: str) -> None:
        """Make sure the dependencies of ``name@version`` are known as parent context."""
        if not context or self.dependency_store.has_parent(context):
            return
        if not split_versioned_package(context):
            return
        try:
            manifest = self._load_manifest(context, exact=False)
        except OSError as exc:
            logger.info("Could not load package.json for context %s: %s", context, exc)
            return
        if manifest is not None:
            self.store_dependencies(context, manifest)

    def _load_manifest(self, versioned_package: str, exact: bool) -> Optional[PackageManifest]:
        """Read the cached manifest, or fetch, validate and save it.

        A fetched manifest whose version contradicts the request is rejected.
        """
        path = manifest_path(versioned_package)
        if self.fetcher.cache_enabled and self.fetcher.exists(path):
            try:
                manifest = PackageManifest.from_json(self.fetcher.read_file(path))
            except ValueError as exc:
                logger.warning("Ignoring unreadable cached manifest %s: %s", path, exc)
            else:
                logger.debug("Using cached package.json: %s", path)
                return manifest

        content = self.fetcher.resolve(f"{versioned_package}/{Constants.PACKAGE_JSON_FILE}")
        try:
            manifest = PackageManifest.from_json(content)
            match = TRAILING_VERSION.search(versioned_package)
            expected = match.group(1) if match else None
            if expected and manifest.version:
                matches = (
                    manifest.version == expected
                    if exact
                    else version_satisfies_request(expected, manifest.version)
                )
                if not matches:
                    raise VersionMismatchError(versioned_package, expected, manifest.version)
        except (ValueError, VersionMismatchError) as exc:
            logger.warning("Rejected package.json for %s: %s", versioned_package, exc)
            return None

        self.fetcher.set_file(path, manifest.to_json())
        logger.info("Saved package.json to %s", path)
        return manifest

    def store_dependencies(self, package_key: str, manifest: PackageManifest) -> None:
        """Record ``manifest`` as parent context and re-check multi-parent conflicts."""
        deps = self.dependency_store.store_package_dependencies(package_key, manifest)
        if not deps:
            return
        for dep in deps:
            self.check_multi_parent(dep)

    def check_multi_parent(self, package_name: str) -> None:
        """Warn once when two or more parents pin different versions of a package."""
        parents = self.dependency_store.parents_requiring(package_name)
        if len(parents) < 2:
            return
        if len({version for _, version in parents}) > 1:
            self.session.warnings.emit_multi_parent_conflict_warn(package_name, parents)
