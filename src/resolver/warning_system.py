"""Diagnostics emitted during resolution and the sinks that receive them.

Every diagnostic carries a level (info, warn or error), a kind and a
plain-text message. Each distinct dedup key is emitted at most once per
WarningSystem, which lives for one resolution session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from constants import DiagnosticLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    level: DiagnosticLevel
    kind: str
    message: str
    key: str = ""


class DiagnosticSink:
    """Receives diagnostics; subclasses decide the transport."""

    def emit(self, diagnostic: Diagnostic) -> None:
        raise NotImplementedError


class LoggingSink(DiagnosticSink):
    """Routes diagnostics to the ``solresolve.diagnostics`` logger."""

    _LEVELS = {
        DiagnosticLevel.INFO: logging.INFO,
        DiagnosticLevel.WARN: logging.WARNING,
        DiagnosticLevel.ERROR: logging.ERROR,
    }

    def __init__(self, target: Optional[logging.Logger] = None):
        self.logger = target or logging.getLogger("solresolve.diagnostics")

    def emit(self, diagnostic: Diagnostic) -> None:
        self.logger.log(
            self._LEVELS[diagnostic.level],
            "%s",
            diagnostic.message,
            extra={"kind": diagnostic.kind, "dedup_key": diagnostic.key},
        )


class MemorySink(DiagnosticSink):
    """Keeps diagnostics in a list, for embedding callers and tests."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


class WarningSystem:
    """Formats and de-duplicates resolution diagnostics."""

    MULTI_PARENT = "multi-parent"
    DUPLICATE_FILE = "duplicate-file"
    DEPENDENCY_MISMATCH = "dependency-mismatch"
    PEER_DEPENDENCY_MISMATCH = "peer-dependency-mismatch"
    INVALID_IMPORT = "invalid-import"
    FAILED_TO_RESOLVE = "failed-to-resolve"
    PROCESSING_ERROR = "processing-error"

    def __init__(self, sink: Optional[DiagnosticSink] = None):
        self.sink = sink or LoggingSink()
        self._emitted: Set[str] = set()

    def emit(self, level: DiagnosticLevel, kind: str, message: str, key: str) -> bool:
        """Send one diagnostic unless ``key`` was already emitted; True when sent."""
        if key in self._emitted:
            return False
        self._emitted.add(key)
        self.sink.emit(Diagnostic(level, kind, message, key))
        return True

    def was_emitted(self, key: str) -> bool:
        return key in self._emitted

    def emit_multi_parent_conflict_warn(self, package_name: str, parents: Iterable[Tuple[str, str]]) -> bool:
        """Warn that several parents require different versions of ``package_name``."""
        parents = list(parents)
        versions = sorted({version for _, version in parents})
        key = f"multi-parent:{package_name}:{'↔'.join(versions)}"
        lines = [
            "MULTI-PARENT DEPENDENCY CONFLICT",
            f"   Multiple parent packages require different versions of: {package_name}",
        ]
        lines.extend(f"   - {parent} requires {package_name}@{version}" for parent, version in parents)
        return self.emit(DiagnosticLevel.WARN, self.MULTI_PARENT, "\n".join(lines), key)

    def emit_duplicate_file_error(
        self,
        package_name: str,
        relative_path: Optional[str],
        previous_version: str,
        requested_version: str,
    ) -> bool:
        rel = relative_path or "<unknown>"
        key = f"dup-file:{package_name}:{rel}:{previous_version}↔{requested_version}"
        lines = [
            "DUPLICATE FILE DETECTED - this will cause compilation errors",
            f"   File: {rel}",
            f"   From package: {package_name}",
            f"   Already imported from version: {previous_version}",
            f"   Now requesting version:       {requested_version}",
            "   Use an explicit versioned import and choose ONE version:",
            f'     import "{package_name}@{previous_version}/{rel}";',
            "   or",
            f'     import "{package_name}@{requested_version}/{rel}";',
        ]
        return self.emit(DiagnosticLevel.ERROR, self.DUPLICATE_FILE, "\n".join(lines), key)

    def emit_dependency_mismatch(
        self,
        package: str,
        package_version: str,
        dependency: str,
        requested_range: str,
        resolved_version: str,
        *,
        peer: bool,
        breaking: bool,
        resolved_from: str,
        already_imported: bool,
    ) -> bool:
        prefix = "peer" if peer else "dep"
        key = f"{prefix}:{package}→{dependency}:{requested_range}→{resolved_version}"
        dep_type = "peerDependencies" if peer else "dependencies"
        actual = (
            f"   But actual imported version is: {dependency}@{resolved_version}"
            if already_imported
            else f"   But your workspace will resolve to: {dependency}@{resolved_version}"
        )
        lines = [
            f"{'Peer dependency' if peer else 'Dependency'} version mismatch detected:",
            f"   Package {package}@{package_version} requires in {dep_type}:",
            f'     "{dependency}": "{requested_range}"',
            actual,
            f"     (from {resolved_from})",
        ]
        if breaking:
            lines.append(
                "   PEER DEPENDENCY MISMATCH - this WILL cause compilation failures"
                if peer
                else "   MAJOR VERSION MISMATCH - may cause compilation failures"
            )
        lines.append(f'   To fix, update your workspace package.json: "{dependency}": "{requested_range}"')
        kind = self.PEER_DEPENDENCY_MISMATCH if peer else self.DEPENDENCY_MISMATCH
        level = DiagnosticLevel.ERROR if breaking else DiagnosticLevel.WARN
        return self.emit(level, kind, "\n".join(lines), key)

    def emit_invalid_import(self, import_path: str, reason: str) -> bool:
        key = f"invalid:{import_path}"
        message = f"Invalid import path encountered\n   Import: {import_path}\n   Reason: {reason}"
        return self.emit(DiagnosticLevel.WARN, self.INVALID_IMPORT, message, key)

    def emit_failed_to_resolve(self, import_path: str) -> bool:
        key = f"resolve-fail:{import_path}"
        message = f"Failed to resolve import\n   Import: {import_path}"
        return self.emit(DiagnosticLevel.WARN, self.FAILED_TO_RESOLVE, message, key)

    def emit_processing_error(self, import_path: str, err: BaseException) -> bool:
        key = f"proc-error:{import_path}:{err}"
        message = f"Error processing import\n   Import: {import_path}\n   Error: {err}"
        return self.emit(DiagnosticLevel.ERROR, self.PROCESSING_ERROR, message, key)
