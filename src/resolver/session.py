"""State owned by one resolution session.

Everything that must stay consistent across a single entry-file walk lives
here rather than in module globals, so separate sessions never share a
version decision.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set, Tuple

from resolver.dependency_store import DependencyStore
from resolver.patterns import PKG_MAPPING_PREFIX
from resolver.warning_system import DiagnosticSink, WarningSystem


@dataclass
class ResolutionSession:
    """Version cache, resolution map and dedup state for one session."""
    warnings: WarningSystem = field(default_factory=WarningSystem)
    dependency_store: DependencyStore = field(default_factory=DependencyStore)
    import_mappings: Dict[str, str] = field(default_factory=dict)
    resolutions: Dict[str, str] = field(default_factory=dict)
    imported_files: Dict[str, str] = field(default_factory=dict)
    fetched_github_packages: Set[str] = field(default_factory=set)
    package_context: Optional[str] = None

    @classmethod
    def with_sink(cls, sink: DiagnosticSink) -> "ResolutionSession":
        return cls(warnings=WarningSystem(sink))

    @staticmethod
    def mapping_key(package_name: str) -> str:
        return f"{PKG_MAPPING_PREFIX}{package_name}"

    def get_package_mapping(self, package_name: str) -> Optional[str]:
        """``name@version`` chosen for ``package_name`` in this session."""
        return self.import_mappings.get(self.mapping_key(package_name))

    def set_package_mapping(self, package_name: str, versioned: str) -> None:
        self.import_mappings[self.mapping_key(package_name)] = versioned

    def has_package_mapping(self, package_name: str) -> bool:
        return self.mapping_key(package_name) in self.import_mappings

    def package_mappings(self) -> Iterator[Tuple[str, str]]:
        for key, value in self.import_mappings.items():
            if key.startswith(PKG_MAPPING_PREFIX):
                yield key[len(PKG_MAPPING_PREFIX):], value

    def record_resolution(self, original: str, resolved: str) -> None:
        """Remember ``original -> resolved``; the first record for a key wins."""
        self.resolutions.setdefault(original, resolved)
