"""Walk the import graph of an entry file and collect a source bundle.

Imports are followed depth first with an explicit stack. Each frame carries
the package context of the file it belongs to, so unversioned imports inside
a package resolve against that package's declared dependencies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Union

from adapters.io_adapter import IOAdapter
from common.logging_utils import Timer, extra_context
from constants import Constants
from resolution.index import FileResolutionIndex
from resolver.dependency_helpers import (
    extract_imports,
    extract_package_context,
    extract_url_context,
    resolve_relative_import,
)
from resolver.errors import FetchError, MalformedSpecifierError
from resolver.handlers import HandlerContext
from resolver.import_resolver import ImportResolver
from resolver.parser_utils import extract_package_name, extract_version
from resolver.patterns import (
    HARDHAT_IMPORT,
    URL_PROTOCOL,
    has_source_extension,
    is_deps_path,
    is_http_url,
    is_normalized_external_path,
    is_npm_protocol,
    is_relative_import,
)
from resolver.remappings import Remapping, apply_remappings, normalize_remappings
from resolver.session import ResolutionSession
from resolver.warning_system import DiagnosticSink

logger = logging.getLogger(__name__)

# Packages imported without a scope or version that still live on npm.
SPECIAL_NPM_IMPORTS = (HARDHAT_IMPORT,)


@dataclass
class _Frame:
    specifier: str
    resolved_path: str
    context: Optional[str]
    imports: List[str]
    position: int = 0
    edges: List[str] = field(default_factory=list)


def unversioned_key(specifier: str) -> Optional[str]:
    """``@scope/pkg@1.2.3/a.sol`` -> ``@scope/pkg/a.sol``; None when not versioned."""
    if URL_PROTOCOL.match(specifier) or is_deps_path(specifier):
        return None
    name = extract_package_name(specifier)
    version = extract_version(specifier)
    if not name or not version or not specifier.startswith(f"{name}@{version}/"):
        return None
    return name + specifier[len(name) + 1 + len(version):]


def _npm_context(path: str) -> Optional[str]:
    if is_http_url(path) or is_normalized_external_path(path):
        return None
    if is_deps_path(path) and not path.startswith(Constants.DEPS_NPM_DIR):
        return None
    return extract_package_context(path)


class DependencyResolver:
    """Build the source bundle and import graph for one entry file.

    Args:
        io: Adapter used for reads, writes and fetches.
        target_file: Entry file; scopes the import resolver's index entries.
        sink: Receiver for diagnostics; logs them when omitted.
        session: Share an existing session instead of creating one.
    """

    def __init__(
        self,
        io: IOAdapter,
        target_file: str,
        sink: Optional[DiagnosticSink] = None,
        session: Optional[ResolutionSession] = None,
    ):
        self.io = io
        self.target_file = target_file
        if session is None:
            session = ResolutionSession.with_sink(sink) if sink else ResolutionSession()
        self.session = session
        self.resolution_index = FileResolutionIndex(io)
        self.resolver = ImportResolver(io, target_file, session, self.resolution_index)
        self.remappings: List[Remapping] = []
        self.source_files: Dict[str, str] = {}
        self.spec_to_resolved: Dict[str, str] = {}
        self.processed: Set[str] = set()
        self.import_graph: Dict[str, List[str]] = {}
        self.file_contexts: Dict[str, str] = {}

    @property
    def warnings(self):
        return self.session.warnings

    def set_remappings(self, remappings: Iterable[Union[str, Remapping]]) -> None:
        self.remappings = normalize_remappings(remappings)

    def set_cache_enabled(self, enabled: bool) -> None:
        self.resolver.set_cache_enabled(enabled)

    @staticmethod
    def is_local_file(path: str) -> bool:
        """True for workspace files and already materialized ``.deps`` files."""
        if URL_PROTOCOL.match(path) or is_npm_protocol(path):
            return False
        if is_deps_path(path):
            return has_source_extension(path)
        if any(pattern.match(path) for pattern in SPECIAL_NPM_IMPORTS):
            return False
        return has_source_extension(path) and "@" not in path

    def build_dependency_tree(self, entry_file: str) -> Dict[str, str]:
        """Collect every file reachable from ``entry_file``.

        Returns:
            The bundle, keyed by the specifiers the compiler will request.

        Raises:
            MalformedSpecifierError: ``entry_file`` is not a source file.
            OSError: The entry file itself could not be read or fetched.
        """
        self.source_files.clear()
        self.spec_to_resolved.clear()
        self.processed.clear()
        self.import_graph.clear()
        self.file_contexts.clear()
        self.resolution_index.ensure_loaded()

        with Timer() as timer:
            root = self._open(entry_file, None)
            stack: List[_Frame] = [root] if root else []
            while stack:
                frame = stack[-1]
                if frame.position >= len(frame.imports):
                    self.import_graph[frame.specifier] = frame.edges
                    stack.pop()
                    continue
                imported = frame.imports[frame.position]
                frame.position += 1
                child = self._child_frame(frame, imported)
                if child is not None:
                    stack.append(child)

        logger.info(
            "Built source bundle with %d files from %s",
            len(self.source_files),
            entry_file,
            extra=extra_context(
                event="dependency_tree", component="dependency_resolver", duration_ms=timer.duration_ms()
            ),
        )
        return self.source_files

    def _child_frame(self, parent: _Frame, imported: str) -> Optional[_Frame]:
        next_path = imported
        if is_relative_import(imported):
            next_path = resolve_relative_import(parent.specifier, imported)
        remapped = apply_remappings(next_path, self.remappings)
        was_remapped = remapped != next_path
        next_path = remapped

        try:
            frame = self._open(next_path, parent.context)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Skipping %s imported by %s: %s", next_path, parent.specifier, exc)
            self.warnings.emit_processing_error(next_path, exc)
            return None

        if next_path not in parent.edges and next_path in self.source_files:
            parent.edges.append(next_path)
        self._record_child_resolution(parent, imported, next_path, was_remapped)
        return frame

    def _open(self, specifier: str, parent_context: Optional[str]) -> Optional[_Frame]:
        """Resolve one file and return its frame, or None when there is nothing to walk."""
        if not has_source_extension(specifier):
            self.warnings.emit_invalid_import(specifier, "not a source file")
            if not self.processed:
                raise MalformedSpecifierError(specifier, Constants.SOURCE_EXTENSIONS)
            logger.info("Skipping non-source import %s", specifier)
            return None
        if specifier in self.processed:
            logger.debug("Already processed: %s", specifier)
            return None
        self.processed.add(specifier)

        self.resolver.set_package_context(parent_context)
        if parent_context:
            self.file_contexts[specifier] = parent_context
            if not URL_PROTOCOL.match(parent_context):
                self.resolver.ensure_package_context_loaded(parent_context)

        local = self.is_local_file(specifier)
        if local:
            content = self._read_local(specifier)
            resolved = specifier
        else:
            content = self.resolver.resolve_and_save(specifier, None, False)
            resolved = self.resolver.get_resolution(specifier) or specifier
        self._store(specifier, content, resolved)

        context = _npm_context(specifier)
        if not context and not local:
            context = _npm_context(resolved) or extract_url_context(specifier)
        if context:
            self.file_contexts[resolved] = context
            if not URL_PROTOCOL.match(context):
                self.resolver.ensure_package_context_loaded(context)
            logger.debug("%s belongs to %s", specifier, context)

        self.resolution_index.clear_file_resolutions(specifier)
        if resolved != specifier:
            self.resolution_index.clear_file_resolutions(resolved)

        return _Frame(specifier, resolved, context or parent_context, extract_imports(content))

    def _read_local(self, specifier: str) -> str:
        try:
            return self.io.read_file(specifier)
        except OSError as exc:
            logger.debug("Local read failed for %s: %s", specifier, exc)
        handled = self.resolver.handler_registry.try_handle(HandlerContext(specifier, self.target_file))
        if handled is not None and handled.content is not None:
            return handled.content
        self.warnings.emit_failed_to_resolve(specifier)
        raise FetchError(specifier, "file not found")

    def _store(self, specifier: str, content: str, resolved: str) -> None:
        self.source_files[specifier] = content
        self.spec_to_resolved[specifier] = resolved
        alias = unversioned_key(specifier)
        if alias and alias not in self.source_files:
            self.source_files[alias] = content
            logger.debug("Also stored %s under %s", specifier, alias)

    def _resolved_path(self, specifier: str) -> str:
        if self.is_local_file(specifier):
            return specifier
        return self.resolver.get_resolution(specifier) or specifier

    def _record_child_resolution(self, parent: _Frame, imported: str, child: str, was_remapped: bool) -> None:
        child_resolved = self._resolved_path(child)
        sources = [parent.specifier]
        if parent.resolved_path != parent.specifier:
            sources.append(parent.resolved_path)
        keys = [imported, child] if was_remapped else [imported]
        for source in sources:
            for key in keys:
                self.resolution_index.record_resolution(source, key, child_resolved)

    def get_source_bundle(self) -> Dict[str, str]:
        return self.source_files

    def get_import_graph(self) -> Dict[str, List[str]]:
        return self.import_graph

    def get_package_context(self, file_path: str) -> Optional[str]:
        return self.file_contexts.get(file_path)

    def get_resolved_path(self, specifier: str) -> Optional[str]:
        return self.spec_to_resolved.get(specifier)

    def to_compiler_input(self) -> Dict[str, Dict[str, str]]:
        """Bundle in the ``{path: {"content": ...}}`` shape compilers accept."""
        return {path: {"content": content} for path, content in self.source_files.items()}

    def save_resolution_index(self) -> None:
        try:
            self.resolution_index.save()
        except OSError as exc:
            logger.warning("Failed to save resolution index: %s", exc)
