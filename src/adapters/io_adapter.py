"""IO adapter interface consumed by the resolver core.

The core never touches the filesystem or network directly; it reads, writes
and fetches through an ``IOAdapter``. Two optional capabilities exist:
``resolve_and_save`` (fetch and cache in one step, cache aware) and
``set_cache_enabled``. Use :func:`has_resolve_and_save` and
:func:`has_cache_support` to check for them.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class IOAdapter(ABC):
    """File and network primitives used by the resolver."""

    @abstractmethod
    def read_file(self, path: str) -> str:
        """Return the text at ``path``; raise FetchError when it cannot be read."""

    @abstractmethod
    def write_file(self, path: str, content: str) -> None:
        """Write ``content`` to ``path``; the parent directory must exist."""

    @abstractmethod
    def set_file(self, path: str, content: str) -> None:
        """Write ``content`` to ``path``, creating parent directories."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if ``path`` exists."""

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create ``path`` and any missing parents."""

    @abstractmethod
    def fetch(self, url: str) -> str:
        """Fetch a URL, npm path, ``ipfs://`` or ``bzz://`` URI; raise FetchError on failure."""


def has_resolve_and_save(io: IOAdapter) -> bool:
    return callable(getattr(io, "resolve_and_save", None))


def has_cache_support(io: IOAdapter) -> bool:
    return callable(getattr(io, "set_cache_enabled", None))
