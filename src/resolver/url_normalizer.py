"""Pure translations of external import URLs into canonical cache paths.

Every function is total: unrecognized input yields ``None`` rather than an
exception, and the same input always yields the same output.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from constants import Constants

_GITHUB_BLOB = re.compile(r"^https?://github\.com/([^/]+)/([^/]+)/blob/([^/]+)/(.+)$")
_GITHUB_RAW = re.compile(r"^https?://raw\.githubusercontent\.com/([^/]+)/([^/]+)/(.+)$")
_CDN_VERSIONED = re.compile(
    r"^https?://(?:unpkg\.com|cdn\.jsdelivr\.net/npm)/(@?[^/]+(?:/[^/@]+)?)@([^/]+)/(.+)$"
)
_CDN_UNVERSIONED = re.compile(
    r"^https?://(?:unpkg\.com|cdn\.jsdelivr\.net/npm)/(@?[^/]+(?:/[^/@]+)?)/(.+)$"
)
_IPFS = re.compile(r"^ipfs://(?:ipfs/)?([^/]+)(?:/(.+))?$")
_SWARM = re.compile(r"^bzz(?:-raw)?://([^/]+)(?:/(.+))?$")


@dataclass(frozen=True)
class NpmCdnRewrite:
    npm_path: str


@dataclass(frozen=True)
class GithubRawNormalization:
    owner: str
    repo: str
    ref: str
    file_path: str
    normalized_path: str
    target_path: str


@dataclass(frozen=True)
class ContentAddressedNormalization:
    normalized_path: str
    target_path: str


def normalize_github_blob_url(url: str) -> Optional[str]:
    """``github.com/<o>/<r>/blob/<ref>/<p>`` to its raw.githubusercontent.com form."""
    match = _GITHUB_BLOB.match(url)
    if not match:
        return None
    owner, repo, ref, file_path = match.groups()
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{file_path}"


def rewrite_npm_cdn_url(url: str) -> Optional[NpmCdnRewrite]:
    """jsDelivr ``/npm/`` and unpkg URLs to a bare npm path."""
    match = _CDN_VERSIONED.match(url)
    if match:
        package_name, version, file_path = match.groups()
        return NpmCdnRewrite(f"{package_name}@{version}/{file_path}")
    match = _CDN_UNVERSIONED.match(url)
    if match:
        package_name, file_path = match.groups()
        return NpmCdnRewrite(f"{package_name}/{file_path}")
    return None


def normalize_raw_github_url(url: str) -> Optional[GithubRawNormalization]:
    """Map a raw GitHub URL to ``github/<owner>/<repo>@<ref>/<path>``.

    ``refs/heads/<branch>`` and ``refs/tags/<tag>`` collapse to the bare
    branch or tag name.
    """
    match = _GITHUB_RAW.match(url)
    if not match:
        return None
    owner, repo, rest = match.groups()
    if rest.startswith("refs/heads/") or rest.startswith("refs/tags/"):
        parts = rest.split("/")
        ref = parts[2]
        file_path = "/".join(parts[3:])
    elif "/" in rest:
        ref, file_path = rest.split("/", 1)
    else:
        return None
    if not ref or not file_path:
        return None
    normalized = f"github/{owner}/{repo}@{ref}/{file_path}"
    return GithubRawNormalization(
        owner=owner,
        repo=repo,
        ref=ref,
        file_path=file_path,
        normalized_path=normalized,
        target_path=f"{Constants.DEPS_DIR}{normalized}",
    )


def normalize_ipfs_url(url: str) -> Optional[ContentAddressedNormalization]:
    """``ipfs://[ipfs/]<hash>/<path>`` to ``ipfs/<hash>/<path>``."""
    match = _IPFS.match(url)
    if not match:
        return None
    digest, file_path = match.groups()
    normalized = f"ipfs/{digest}/{file_path}" if file_path else f"ipfs/{digest}"
    return ContentAddressedNormalization(normalized, normalized)


def normalize_swarm_url(url: str) -> Optional[ContentAddressedNormalization]:
    """``bzz://`` or ``bzz-raw://<hash>/<path>`` to ``swarm/<hash>/<path>``."""
    match = _SWARM.match(url)
    if not match:
        return None
    digest, file_path = match.groups()
    normalized = f"swarm/{digest}/{file_path}" if file_path else f"swarm/{digest}"
    return ContentAddressedNormalization(normalized, normalized)
