"""Flatten an entry file and its resolved imports into one import-free source."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from adapters.io_adapter import IOAdapter
from resolver.dependency_resolver import DependencyResolver, unversioned_key
from resolver.patterns import PRAGMA_SOLIDITY, SPDX_LICENSE, VERSIONED_PATH_SEMVER
from resolver.remappings import Remapping, normalize_remappings, parse_remappings_file_content
from resolver.warning_system import DiagnosticSink

logger = logging.getLogger(__name__)

_IMPORT_STATEMENT = re.compile(r"(?m)^[ \t]*import\s+[^;]+;[ \t]*\r?\n?")


@dataclass
class FlattenResult:
    entry: str
    order: List[str]
    sources: Dict[str, str]
    flattened: str
    out_file: Optional[str] = None


def strip_imports(source: str) -> str:
    return _IMPORT_STATEMENT.sub("", source)


def dependency_order(entry: str, graph: Dict[str, List[str]]) -> List[str]:
    """Post-order walk of ``graph`` from ``entry``: dependencies before dependents."""
    if entry not in graph:
        return [entry]
    order: List[str] = []
    visited = {entry}
    stack = [(entry, iter(graph.get(entry, [])))]
    while stack:
        node, children = stack[-1]
        child = next(children, None)
        if child is None:
            order.append(node)
            stack.pop()
            continue
        if child in visited:
            continue
        visited.add(child)
        stack.append((child, iter(graph.get(child, []))))
    return order


class SourceFlattener:
    """Build the dependency graph for an entry file and concatenate it.

    Args:
        io: Adapter used for every read, write and fetch.
        sink: Receiver for resolution diagnostics.
        cache_enabled: Reuse files already present under ``.deps``.
    """

    def __init__(self, io: IOAdapter, sink: Optional[DiagnosticSink] = None, cache_enabled: bool = True):
        self.io = io
        self.sink = sink
        self.cache_enabled = cache_enabled

    def _load_remappings(
        self,
        remappings: Optional[Iterable[Union[str, Remapping]]],
        remappings_file: Optional[str],
    ) -> List[Remapping]:
        result = normalize_remappings(remappings or [])
        if remappings_file:
            try:
                result.extend(parse_remappings_file_content(self.io.read_file(remappings_file)))
            except OSError as exc:
                logger.warning("Failed to read remappings file %s: %s", remappings_file, exc)
        return result

    @staticmethod
    def _display_path(file: str, bundle: Dict[str, str]) -> str:
        if not file.startswith("@") or VERSIONED_PATH_SEMVER.search(file):
            return file
        for key in bundle:
            if key != file and unversioned_key(key) == file:
                return key
        return file

    def flatten(
        self,
        entry: str,
        remappings: Optional[Iterable[Union[str, Remapping]]] = None,
        remappings_file: Optional[str] = None,
        pragma: Optional[str] = None,
    ) -> FlattenResult:
        """Resolve ``entry`` and return its flattened source.

        The first SPDX line and first ``pragma solidity`` line (or ``pragma``
        when given) form the header; every other license, pragma and import
        line is dropped. Each body is introduced by ``// File: <specifier>``.
        """
        resolver = DependencyResolver(self.io, entry, sink=self.sink)
        resolver.set_cache_enabled(self.cache_enabled)
        resolver.set_remappings(self._load_remappings(remappings, remappings_file))
        bundle = resolver.build_dependency_tree(entry)
        resolver.save_resolution_index()

        order: List[str] = []
        emitted = set()
        first_spdx: Optional[str] = None
        first_pragma: Optional[str] = None
        parts: List[str] = []

        for file in dependency_order(entry, resolver.get_import_graph()):
            # one body per resolved file, however many specifiers reached it
            identity = resolver.get_resolved_path(file) or file
            if identity in emitted:
                logger.debug("Skipping %s, already emitted as %s", file, identity)
                continue
            emitted.add(identity)
            order.append(file)
            content = bundle.get(file)
            if not content:
                continue
            kept = []
            for line in content.splitlines():
                if SPDX_LICENSE.match(line):
                    if first_spdx is None:
                        first_spdx = line.strip()
                    continue
                match = PRAGMA_SOLIDITY.match(line)
                if match:
                    if first_pragma is None:
                        first_pragma = match.group(0).strip()
                    continue
                kept.append(line)
            body = strip_imports("\n".join(kept)).strip()
            display = self._display_path(file, bundle)
            logger.debug("Adding %s to flattened output", display)
            parts.append(f"// File: {display}\n\n{body}")

        header = []
        if first_spdx:
            header.append(first_spdx)
        if pragma:
            header.append(f"pragma solidity {pragma};")
        elif first_pragma:
            header.append(first_pragma)

        sections = ["\n".join(header)] if header else []
        sections.extend(parts)
        flattened = "\n\n\n".join(sections) + "\n"
        return FlattenResult(entry=entry, order=order, sources=bundle, flattened=flattened)

    def flatten_to_file(
        self,
        entry: str,
        out_file: str,
        remappings: Optional[Iterable[Union[str, Remapping]]] = None,
        remappings_file: Optional[str] = None,
        pragma: Optional[str] = None,
    ) -> FlattenResult:
        result = self.flatten(entry, remappings, remappings_file, pragma)
        directory = os.path.dirname(out_file)
        if directory:
            self.io.mkdir(directory)
        self.io.write_file(out_file, result.flattened)
        result.out_file = out_file
        return result
