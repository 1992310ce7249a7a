"""Persisted map of original import specifiers to local cache paths.

The index is stored as JSON at ``.deps/npm/.resolution-index.json`` with the
shape ``{source_file: {original_import: local_path}}`` and is used by
editor tooling to jump from an import to the file that was compiled.
"""
from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from adapters.io_adapter import IOAdapter
from constants import Constants
from resolver.patterns import (
    GITHUB_PREFIX,
    NPM_PACKAGE,
    http_cache_path,
    is_deps_path,
    is_http_url,
    is_normalized_external_path,
)

logger = logging.getLogger(__name__)

IndexData = Dict[str, Dict[str, str]]


class BaseResolutionIndex(ABC):
    """Normalization and in-memory bookkeeping shared by index backends."""

    index_path = Constants.RESOLUTION_INDEX_FILE

    def __init__(self):
        self.index: IndexData = {}
        self.dirty = False
        self.loaded = False

    @abstractmethod
    def load(self) -> None:
        """Read the index from storage."""

    @abstractmethod
    def save(self) -> None:
        """Persist the index when it changed."""

    def ensure_loaded(self) -> None:
        if not self.loaded:
            self.load()

    @staticmethod
    def normalize_source_file(path: str) -> str:
        """Strip cache roots so a file keeps one key however it was reached."""
        if not path:
            return path
        if path.startswith(Constants.DEPS_NPM_DIR):
            return path[len(Constants.DEPS_NPM_DIR):]
        if path.startswith(Constants.DEPS_GITHUB_DIR):
            return GITHUB_PREFIX + path[len(Constants.DEPS_GITHUB_DIR):]
        return path

    @staticmethod
    def to_local_path(resolved: str) -> str:
        """Deterministic on-disk location for a resolved specifier."""
        if not resolved or is_deps_path(resolved):
            return resolved
        if is_http_url(resolved):
            return http_cache_path(resolved)
        if is_normalized_external_path(resolved):
            return f"{Constants.DEPS_DIR}{resolved}"
        if "@" in resolved and NPM_PACKAGE.match(resolved):
            return f"{Constants.DEPS_NPM_DIR}{resolved}"
        return resolved

    def record_resolution(self, source_file: str, original_import: str, resolved_path: str) -> None:
        source = self.normalize_source_file(source_file)
        entries = self.index.setdefault(source, {})
        local = self.to_local_path(resolved_path)
        if entries.get(original_import) != local:
            entries[original_import] = local
            self.dirty = True
            logger.debug("Recorded: %s | %s -> %s", source, original_import, local)

    def clear_file_resolutions(self, source_file: str) -> None:
        source = self.normalize_source_file(source_file)
        if source in self.index:
            del self.index[source]
            self.dirty = True
            logger.debug("Cleared resolutions for %s", source)

    def lookup(self, source_file: str, import_path: str) -> Optional[str]:
        entries = self.index.get(self.normalize_source_file(source_file)) or {}
        return entries.get(import_path)

    def lookup_any(self, import_path: str) -> Optional[str]:
        """First mapping for ``import_path`` across all source files."""
        for entries in self.index.values():
            if import_path in entries:
                return entries[import_path]
        return None

    def get_resolutions_for_file(self, source_file: str) -> Optional[Dict[str, str]]:
        entries = self.index.get(self.normalize_source_file(source_file))
        return dict(entries) if entries is not None else None


class FileResolutionIndex(BaseResolutionIndex):
    """Index persisted through an ``IOAdapter``."""

    def __init__(self, io: IOAdapter):
        super().__init__()
        self.io = io
        self._load_lock = threading.Lock()

    def load(self) -> None:
        """Load once; concurrent callers wait for the first load."""
        if self.loaded:
            return
        with self._load_lock:
            if self.loaded:
                return
            try:
                if self.io.exists(self.index_path):
                    data = json.loads(self.io.read_file(self.index_path))
                    self.index = data if isinstance(data, dict) else {}
                    logger.debug("Loaded resolution index with %d files", len(self.index))
            except (ValueError, OSError) as exc:
                logger.warning("Failed to load resolution index %s: %s", self.index_path, exc)
                self.index = {}
            finally:
                self.loaded = True

    def save(self) -> None:
        if not self.dirty:
            return
        directory = Constants.DEPS_NPM_DIR.rstrip("/")
        if not self.io.exists(directory):
            self.io.mkdir(directory)
        self.io.write_file(self.index_path, json.dumps(self.index, indent=2))
        self.dirty = False
        logger.debug("Saved resolution index to %s", self.index_path)
