"""Local filesystem + HTTP implementation of the IO adapter."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from adapters.io_adapter import IOAdapter
from common.http_client import fetch_text
from constants import Constants
from resolver.errors import FetchError
from resolver.patterns import default_cache_path
from resolver.to_http_url import to_http_url

logger = logging.getLogger(__name__)


class LocalIOAdapter(IOAdapter):
    """Read and write files under ``root``; fetch remote content with requests.

    Args:
        root: Directory relative paths are resolved against.
        cache_enabled: Skip the network when a target already exists.
        gateways: Optional ``npm_url``/``ipfs_gateway``/``swarm_gateway`` overrides.
    """

    def __init__(
        self,
        root: str = ".",
        cache_enabled: Optional[bool] = None,
        gateways: Optional[Mapping[str, str]] = None,
    ):
        self.root = Path(root)
        self.cache_enabled = Constants.CACHE_ENABLED if cache_enabled is None else bool(cache_enabled)
        self.gateways = dict(gateways or {})

    def _path(self, path: str) -> Path:
        return self.root / path

    def set_cache_enabled(self, enabled: bool) -> None:
        self.cache_enabled = bool(enabled)

    def read_file(self, path: str) -> str:
        try:
            return self._path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise FetchError(path, reason=exc.strerror or str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise FetchError(path, reason=f"not valid UTF-8 text ({exc.reason})") from exc

    def write_file(self, path: str, content: str) -> None:
        """Write atomically: a temp file in the same directory is renamed over ``path``."""
        target = self._path(path)
        fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def set_file(self, path: str, content: str) -> None:
        self._path(path).parent.mkdir(parents=True, exist_ok=True)
        self.write_file(path, content)

    def exists(self, path: str) -> bool:
        return self._path(path).exists()

    def mkdir(self, path: str) -> None:
        self._path(path).mkdir(parents=True, exist_ok=True)

    def fetch(self, url: str) -> str:
        target = to_http_url(url, self.gateways)
        logger.debug("GET %s", target)
        return fetch_text(target)

    def resolve_and_save(self, url: str, target_path: Optional[str] = None, use_original: bool = False) -> str:
        """Return cached content for ``url`` when present, otherwise fetch and store it.

        ``use_original`` is accepted for interface parity; the cache location
        is always derived from ``url`` and ``target_path``.
        """
        dest = default_cache_path(url, target_path)
        if self.cache_enabled and self.exists(dest):
            logger.debug("Cache hit %s", dest)
            return self.read_file(dest)
        content = self.fetch(url)
        self.set_file(dest, content)
        logger.debug("Saved %s -> %s", url, dest)
        return content
