"""Translate import specifiers into concrete HTTP(S) URLs for fetching.

- http(s) passes through unchanged
- npm paths (``@scope/pkg@1.2.3/file.sol``) go to the npm CDN base
- ``ipfs://<hash>/<path>`` goes to the IPFS gateway
- ``bzz://`` / ``bzz-raw://`` go to the Swarm gateway

Bases come from Constants (YAML config or environment) unless an explicit
``overrides`` mapping with ``npm_url``/``ipfs_gateway``/``swarm_gateway`` is
given.
"""
from __future__ import annotations

from typing import Mapping, Optional

from constants import Constants
from resolver.patterns import (
    IPFS_URL,
    SWARM_RAW_SCHEME,
    SWARM_SCHEME,
    is_http_url,
    is_ipfs_url,
    is_swarm_url,
)


def _base(overrides: Optional[Mapping[str, str]], key: str, default: str) -> str:
    value = (overrides or {}).get(key) or default
    return value.rstrip("/")


def to_http_url(url: str, overrides: Optional[Mapping[str, str]] = None) -> str:
    if is_http_url(url):
        return url
    if is_ipfs_url(url):
        match = IPFS_URL.match(url)
        if not match:
            return url
        path = f"/{match.group(2)}" if match.group(2) else ""
        base = _base(overrides, "ipfs_gateway", Constants.IPFS_GATEWAY)
        return f"{base}/{match.group(1)}{path}"
    if is_swarm_url(url):
        raw = url.startswith(SWARM_RAW_SCHEME)
        clean = url[len(SWARM_RAW_SCHEME):] if raw else url[len(SWARM_SCHEME):]
        prefix = "bzz-raw:/" if raw else "bzz:/"
        base = _base(overrides, "swarm_gateway", Constants.SWARM_GATEWAY)
        return f"{base}/{prefix}{clean}"
    base = _base(overrides, "npm_url", Constants.NPM_CDN_URL)
    return f"{base}/{url}"
