"""Path prefixes, schemes and regular expressions shared by the resolver."""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from constants import Constants

NPM_PROTOCOL = "npm:"
ALIAS_PREFIX = "alias:"
HTTP_SCHEME = "http://"
HTTPS_SCHEME = "https://"
IPFS_SCHEME = "ipfs://"
SWARM_SCHEME = "bzz://"
SWARM_RAW_SCHEME = "bzz-raw://"
GITHUB_PREFIX = "github/"
IPFS_PREFIX = "ipfs/"
SWARM_PREFIX = "swarm/"
PKG_MAPPING_PREFIX = "__PKG__"

SCOPED_PACKAGE = re.compile(r"^(@[^/]+/[^/@]+)")
REGULAR_PACKAGE = re.compile(r"^([^/@]+)")
VERSION_SUFFIX = re.compile(r"@(\d+(?:\.\d+)?(?:\.\d+)?[^\s/]*)")
VERSIONED_PACKAGE = re.compile(r"^(@?[^@]+)@(.+)$")
VERSIONED_PATH_SEMVER = re.compile(r"@[^@]+@\d+\.\d+\.\d+/")
NPM_PACKAGE = re.compile(r"^@?[a-zA-Z0-9\-~][a-zA-Z0-9._\-]*[@/]")
EXACT_SEMVER = re.compile(r"^\d+\.\d+\.\d+$")
TRAILING_VERSION = re.compile(r"@([^@/]+)$")
SEMVER_RANGE_PREFIX = re.compile(r"^[\^~>=<v\s]+")
ALIAS_RESOLUTION = re.compile(r"^alias:[^→]+→(.+)$")
SPDX_LICENSE = re.compile(r"^\s*//\s*SPDX-License-Identifier:\s*(.+)$")
PRAGMA_SOLIDITY = re.compile(r"^\s*pragma\s+solidity\s+[^;]+;")
URL_PROTOCOL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
UNSAFE_PATH_CHARS = re.compile(r"[^-a-zA-Z0-9._/]")
HARDHAT_IMPORT = re.compile(r"^hardhat/")
IPFS_URL = re.compile(r"^ipfs://(?:ipfs/)?([^/]+)(?:/(.*))?$")


def is_http_url(url: str) -> bool:
    return url.startswith(HTTP_SCHEME) or url.startswith(HTTPS_SCHEME)


def is_ipfs_url(url: str) -> bool:
    return url.startswith(IPFS_SCHEME)


def is_swarm_url(url: str) -> bool:
    return url.startswith(SWARM_SCHEME) or url.startswith(SWARM_RAW_SCHEME)


def is_npm_protocol(path: str) -> bool:
    return path.startswith(NPM_PROTOCOL)


def is_deps_path(path: str) -> bool:
    return path.startswith(Constants.DEPS_DIR)


def is_relative_import(path: str) -> bool:
    return path.startswith("./") or path.startswith("../")


def is_normalized_external_path(path: str) -> bool:
    return path.startswith((GITHUB_PREFIX, IPFS_PREFIX, SWARM_PREFIX))


def has_source_extension(path: str) -> bool:
    return path.endswith(tuple(Constants.SOURCE_EXTENSIONS))


def is_resolvable_specifier(path: str) -> bool:
    """True for specifiers naming a source file or a package manifest."""
    return has_source_extension(path) or path.endswith(Constants.PACKAGE_JSON_FILE)


def split_versioned_package(value: str) -> Optional[tuple]:
    """Split ``name@version`` (scoped or not) into ``(name, version)``."""
    match = VERSIONED_PACKAGE.match(value)
    if not match:
        return None
    return match.group(1), match.group(2)


def sanitize_url_to_path(url: str) -> str:
    """Strip the scheme and replace characters unsafe for file names."""
    return UNSAFE_PATH_CHARS.sub("_", URL_PROTOCOL.sub("", url))


def strip_semver_prefix(version: str) -> str:
    return SEMVER_RANGE_PREFIX.sub("", version)


def http_cache_path(url: str) -> str:
    """Deterministic ``.deps/http/<host>/<path>`` location for an HTTP URL."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return f"{Constants.DEPS_HTTP_DIR}{sanitize_url_to_path(url)}"
    if not parts.hostname:
        return f"{Constants.DEPS_HTTP_DIR}{sanitize_url_to_path(url)}"
    return f"{Constants.DEPS_HTTP_DIR}{parts.hostname}/{parts.path.lstrip('/')}"


def default_cache_path(url: str, target_path: Optional[str] = None) -> str:
    """Where fetched content for ``url`` lives in the cache.

    An explicit target is honoured (rooted under ``.deps/`` when it is not
    already); otherwise HTTP URLs go under ``.deps/http`` and everything
    else is treated as an npm path under ``.deps/npm``.
    """
    if target_path:
        return target_path if is_deps_path(target_path) else f"{Constants.DEPS_DIR}{target_path}"
    if is_http_url(url):
        return http_cache_path(url)
    return f"{Constants.DEPS_NPM_DIR}{url}"
