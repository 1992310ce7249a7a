"""Scheme routing applied before package resolution."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from resolver.content_fetcher import ContentFetcher
from resolver.patterns import NPM_PROTOCOL, is_http_url, is_ipfs_url, is_npm_protocol, is_swarm_url
from resolver.session import ResolutionSession
from resolver.url_normalizer import (
    normalize_github_blob_url,
    normalize_ipfs_url,
    normalize_raw_github_url,
    normalize_swarm_url,
    rewrite_npm_cdn_url,
)

logger = logging.getLogger(__name__)

ACTION_NONE = "none"
ACTION_REWRITE = "rewrite"
ACTION_CONTENT = "content"


@dataclass(frozen=True)
class RouteAction:
    """What the import resolver should do next.

    ``rewrite`` continues the pipeline with ``url``; ``content`` means the
    import was fetched and saved here; ``none`` means no scheme applied.
    """
    action: str
    url: Optional[str] = None
    content: Optional[str] = None


def _short_content_warning(url: str, content: str) -> None:
    if not content:
        logger.warning("Empty content returned from %s", url)
    elif len(content) < 200:
        logger.debug("Suspiciously short content from %s: %r", url, content[:100])


def route_url(
    original_url: str,
    url: str,
    target_path: Optional[str],
    session: ResolutionSession,
    fetcher: ContentFetcher,
    fetch_github_package_json: Callable[[str, str, str], None],
) -> RouteAction:
    """Normalize ``url`` by scheme, fetching directly where no package logic applies.

    * ``npm:`` prefix is stripped.
    * GitHub blob URLs become raw URLs; CDN URLs serving npm packages are
      rewritten to bare npm paths.
    * Raw GitHub, other HTTP(S), IPFS and Swarm content is fetched and saved
      under its normalized cache path.
    """
    if is_npm_protocol(url):
        logger.debug("Stripping npm: prefix from %s", url)
        return RouteAction(ACTION_REWRITE, url=url[len(NPM_PROTOCOL):])

    if is_http_url(url):
        raw = normalize_github_blob_url(url)
        if raw:
            logger.debug("GitHub blob URL -> raw: %s", raw)
            url = raw

        npm_rewrite = rewrite_npm_cdn_url(url)
        if npm_rewrite:
            logger.info("CDN URL serves an npm package: %s -> %s", url, npm_rewrite.npm_path)
            session.record_resolution(original_url, npm_rewrite.npm_path)
            return RouteAction(ACTION_REWRITE, url=npm_rewrite.npm_path)

        github = normalize_raw_github_url(url)
        if github:
            logger.info("Normalizing raw GitHub URL: %s -> %s", url, github.normalized_path)
            fetch_github_package_json(github.owner, github.repo, github.ref)
            content = fetcher.resolve_and_save(url, github.target_path, False)
            session.record_resolution(original_url, github.target_path)
            return RouteAction(ACTION_CONTENT, content=content)

        logger.info("Fetching directly from URL: %s", url)
        content = fetcher.resolve_and_save(url, target_path, True)
        _short_content_warning(url, content)
        session.record_resolution(original_url, url)
        return RouteAction(ACTION_CONTENT, content=content)

    if is_ipfs_url(url) or is_swarm_url(url):
        normalized = normalize_ipfs_url(url) if is_ipfs_url(url) else normalize_swarm_url(url)
        if normalized:
            logger.info("Normalizing content-addressed URL: %s -> %s", url, normalized.normalized_path)
            content = fetcher.resolve_and_save(url, normalized.target_path, False)
            session.record_resolution(original_url, normalized.normalized_path)
            return RouteAction(ACTION_CONTENT, content=content)

    return RouteAction(ACTION_NONE)
