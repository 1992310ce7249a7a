"""Thin wrapper over the IO adapter used for all resolver reads and fetches."""
from __future__ import annotations

import logging
from typing import Optional

from adapters.io_adapter import IOAdapter, has_cache_support, has_resolve_and_save
from resolver.patterns import default_cache_path

logger = logging.getLogger(__name__)


class ContentFetcher:
    """Fetch, cache and read content through an ``IOAdapter``."""

    def __init__(self, io: IOAdapter):
        self.io = io
        self.cache_enabled = True

    def set_cache_enabled(self, enabled: bool) -> None:
        self.cache_enabled = bool(enabled)
        if has_cache_support(self.io):
            self.io.set_cache_enabled(self.cache_enabled)

    def resolve(self, url: str) -> str:
        logger.debug("fetch %s", url)
        return self.io.fetch(url)

    def resolve_and_save(self, url: str, target_path: Optional[str] = None, use_original: bool = False) -> str:
        """Fetch ``url`` and persist it at its deterministic cache path.

        Uses the adapter's combined, cache-aware ``resolve_and_save`` when it
        has one, otherwise ``fetch`` followed by ``set_file``.
        """
        if has_resolve_and_save(self.io):
            return self.io.resolve_and_save(url, target_path, use_original)
        dest = default_cache_path(url, target_path)
        if self.cache_enabled and self.io.exists(dest):
            return self.io.read_file(dest)
        content = self.io.fetch(url)
        self.io.set_file(dest, content)
        return content

    def read_file(self, path: str) -> str:
        return self.io.read_file(path)

    def set_file(self, path: str, content: str) -> None:
        self.io.set_file(path, content)

    def exists(self, path: str) -> bool:
        try:
            return self.io.exists(path)
        except OSError:
            return False
