"""Resolve one import specifier to content saved at a deterministic cache path.

The resolver routes URL schemes, maps bare package imports to one version
per session, persists package manifests for transitive resolution and
records ``original -> resolved`` for the resolution index.
"""
from __future__ import annotations

import logging
from typing import Optional

from adapters.io_adapter import IOAdapter
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from resolution.index import BaseResolutionIndex, FileResolutionIndex
from resolver.conflict_checker import ConflictChecker
from resolver.content_fetcher import ContentFetcher
from resolver.errors import FetchError, MalformedSpecifierError
from resolver.handlers import HandlerContext, ImportHandlerRegistry
from resolver.package_mapper import PackageMapper
from resolver.parser_utils import extract_package_name, extract_relative_path, extract_version
from resolver.patterns import (
    http_cache_path,
    is_deps_path,
    is_http_url,
    is_normalized_external_path,
    is_resolvable_specifier,
    split_versioned_package,
)
from resolver.session import ResolutionSession
from resolver.url_router import ACTION_CONTENT, ACTION_REWRITE, route_url
from versioning.models import PackageManifest, ResolvedVersion
from versioning.resolver import PackageVersionResolver

logger = logging.getLogger(__name__)


class ImportResolver:
    """Resolve and cache imports for one target file.

    Args:
        io: Adapter used for every read, write and fetch.
        target_file: File whose imports are resolved; scopes the index entries.
        session: Shared session state; a fresh one is created when omitted.
        resolution_index: Index to flush resolutions into.
    """

    def __init__(
        self,
        io: IOAdapter,
        target_file: str,
        session: Optional[ResolutionSession] = None,
        resolution_index: Optional[BaseResolutionIndex] = None,
    ):
        self.io = io
        self.target_file = target_file
        self.session = session or ResolutionSession()
        self.fetcher = ContentFetcher(io)
        self.version_resolver = PackageVersionResolver(io)
        self.conflict_checker = ConflictChecker(self.session, self.version_resolver)
        self.package_mapper = PackageMapper(
            self.session, self.fetcher, self.conflict_checker, self._resolve_package_version
        )
        self.handler_registry = ImportHandlerRegistry()
        self.resolution_index = resolution_index

    @property
    def resolutions(self):
        return self.session.resolutions

    def set_package_context(self, context: Optional[str]) -> None:
        """Prefer ``context``'s declared dependencies when resolving child imports."""
        self.session.package_context = context or None

    def ensure_package_context_loaded(self, context: str) -> None:
        self.package_mapper.load_package_context(context)

    def set_cache_enabled(self, enabled: bool) -> None:
        self.fetcher.set_cache_enabled(enabled)

    def get_resolution(self, original_import: str) -> Optional[str]:
        return self.session.resolutions.get(original_import)

    def log_mappings(self) -> None:
        logger.info("Current import mappings for %s", self.target_file)
        mappings = list(self.session.package_mappings())
        if not mappings:
            logger.info("No mappings defined")
        for name, versioned in mappings:
            logger.info("  %s -> %s", name, versioned)

    def _find_parent_package_context(self) -> Optional[str]:
        explicit = self.session.package_context
        store = self.session.dependency_store
        if explicit and store.has_parent(explicit):
            return explicit
        for _, versioned in reversed(list(self.session.package_mappings())):
            if versioned != explicit and store.has_parent(versioned):
                return versioned
        return None

    def _resolve_package_version(self, package_name: str) -> ResolvedVersion:
        self.package_mapper.check_multi_parent(package_name)
        parent = self._find_parent_package_context()
        parent_deps = self.session.dependency_store.get_parent_package_deps(parent) if parent else None
        return self.version_resolver.resolve_version(package_name, parent_deps, parent)

    def fetch_github_package_json(self, owner: str, repo: str, ref: str) -> None:
        """Load a GitHub repository's package.json once per session, if it has one."""
        key = f"{owner}/{repo}@{ref}"
        target = f"{Constants.DEPS_GITHUB_DIR}{key}/{Constants.PACKAGE_JSON_FILE}"
        cache_enabled = self.fetcher.cache_enabled
        if cache_enabled and key in self.session.fetched_github_packages:
            return

        try:
            if cache_enabled and self.fetcher.exists(target):
                self.session.fetched_github_packages.add(key)
                if not self.session.dependency_store.has_parent(key):
                    manifest = PackageManifest.from_json(self.fetcher.read_file(target))
                    if manifest.name:
                        self.package_mapper.store_dependencies(key, manifest)
                return

            url = f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{Constants.PACKAGE_JSON_FILE}"
            manifest = PackageManifest.from_json(self.fetcher.resolve(url))
        except (OSError, ValueError) as exc:
            logger.info("No package.json for %s (normal for non-npm repos): %s", key, exc)
            return

        if not manifest.name:
            return
        self.fetcher.set_file(target, manifest.to_json())
        if cache_enabled:
            self.session.fetched_github_packages.add(key)
        logger.info("Saved GitHub package.json to %s", target)
        if manifest.version:
            self.package_mapper.store_dependencies(key, manifest)

    def _track_file_version(self, package_name: str, url: str, version: str) -> None:
        """Remember which version each package file came from; flag a second version."""
        relative_path = extract_relative_path(url, package_name)
        if not relative_path:
            return
        file_key = f"{package_name}/{relative_path}"
        previous = self.session.imported_files.get(file_key)
        if previous and previous != version:
            self.session.warnings.emit_duplicate_file_error(package_name, relative_path, previous, version)
        self.session.imported_files[file_key] = version

    def _map_unversioned_import(
        self, url: str, package_name: str, original_url: str, target_path: Optional[str]
    ) -> str:
        versioned = self.session.get_package_mapping(package_name)
        if not versioned:
            logger.debug("First import from %s, resolving version", package_name)
            versioned = self.package_mapper.fetch_and_map_package(package_name)
        if not versioned:
            raise FetchError(
                original_url,
                f'could not resolve a version for "{package_name}"',
            )

        mapped_url = url.replace(package_name, versioned, 1)
        parsed = split_versioned_package(versioned)
        if parsed:
            real_name, version = parsed
            self._track_file_version(real_name, mapped_url, version)
        logger.debug("Mapped %s -> %s", url, mapped_url)
        self.session.record_resolution(original_url, mapped_url)
        return self.resolve_and_save(mapped_url, target_path, True)

    def _handle_explicit_version(
        self, url: str, package_name: str, requested: str, original_url: str, target_path: Optional[str]
    ) -> Optional[str]:
        mapped = self.session.get_package_mapping(package_name)
        if mapped:
            parsed = split_versioned_package(mapped)
            if parsed and parsed[1] == requested and mapped != f"{package_name}@{requested}":
                # alias mapping onto the real package name
                mapped_url = url.replace(f"{package_name}@{requested}", mapped, 1)
                self.session.record_resolution(original_url, mapped_url)
                return self.resolve_and_save(mapped_url, target_path, True)
        else:
            self.session.set_package_mapping(package_name, f"{package_name}@{requested}")

        self._track_file_version(package_name, url, requested)
        self.package_mapper.ensure_package_json_saved(f"{package_name}@{requested}")
        return None

    def resolve_and_save(
        self, url: str, target_path: Optional[str] = None, skip_resolver_mappings: bool = False
    ) -> str:
        """Resolve ``url``, save it under the cache and return its content.

        Args:
            url: Import specifier as written, or an internal rewrite of one.
            target_path: Explicit cache location for the content.
            skip_resolver_mappings: Set on re-entry after a version rewrite.

        Returns:
            The file content.

        Raises:
            MalformedSpecifierError: ``url`` names neither a source file nor a manifest.
            FetchError: The content or the package version could not be obtained.
        """
        original_url = url
        if not is_resolvable_specifier(url):
            self.session.warnings.emit_invalid_import(url, "not a source file or package.json")
            raise MalformedSpecifierError(url, Constants.SOURCE_EXTENSIONS)

        handled = self.handler_registry.try_handle(HandlerContext(url, self.target_file, target_path))
        if handled is not None:
            logger.debug("Import handled by custom handler: %s", url)
            if handled.resolved_path:
                self.session.record_resolution(original_url, handled.resolved_path)
            return handled.content or ""

        routed = route_url(
            original_url, url, target_path, self.session, self.fetcher, self.fetch_github_package_json
        )
        if routed.action == ACTION_CONTENT:
            return routed.content or ""
        if routed.action == ACTION_REWRITE and routed.url:
            url = routed.url

        self.version_resolver.load_workspace_resolutions()
        workspace_keys = self.version_resolver.get_workspace_resolutions().keys()
        package_name = extract_package_name(url, workspace_keys)

        if not skip_resolver_mappings and package_name:
            if f"{package_name}@" not in url:
                return self._map_unversioned_import(url, package_name, original_url, target_path)
            requested = extract_version(url)
            if requested:
                content = self._handle_explicit_version(url, package_name, requested, original_url, target_path)
                if content is not None:
                    return content

        if is_debug_enabled(logger):
            logger.debug(
                "Fetching %s",
                url,
                extra=extra_context(event="fetch", component="import_resolver", target=target_path),
            )
        content = self.fetcher.resolve_and_save(url, target_path, True)
        if not skip_resolver_mappings or original_url == url:
            self.session.record_resolution(original_url, url)
        return content

    @staticmethod
    def to_local_path(resolved: str, target_path: Optional[str] = None) -> str:
        """Deterministic ``.deps`` location for a resolved specifier.

        npm-like paths go under ``.deps/npm``, URLs under ``.deps/http/<host>``
        and normalized GitHub/IPFS/Swarm paths directly under ``.deps``.
        """
        if not resolved:
            return resolved
        if target_path:
            return target_path if is_deps_path(target_path) else f"{Constants.DEPS_DIR}{target_path}"
        if is_deps_path(resolved):
            return resolved
        if is_http_url(resolved):
            return http_cache_path(resolved)
        if is_normalized_external_path(resolved):
            return f"{Constants.DEPS_DIR}{resolved}"
        return f"{Constants.DEPS_NPM_DIR}{resolved}"

    def save_resolutions_to_index(self) -> None:
        """Replace this target file's entries in the index with the session's resolutions."""
        if self.resolution_index is None:
            self.resolution_index = FileResolutionIndex(self.io)
        self.resolution_index.ensure_loaded()
        self.resolution_index.clear_file_resolutions(self.target_file)
        for original, resolved in self.session.resolutions.items():
            self.resolution_index.record_resolution(self.target_file, original, self.to_local_path(resolved))
        self.resolution_index.save()
        logger.debug("Saved %d resolution(s) for %s", len(self.session.resolutions), self.target_file)
