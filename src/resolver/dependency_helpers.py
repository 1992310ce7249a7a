"""Helpers for the dependency graph walk: import extraction and path context."""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from resolver.patterns import is_http_url, is_relative_import

logger = logging.getLogger(__name__)

_IMPORT_PATTERNS = (
    re.compile(r"""import\s+["']([^"']+)["']\s*;"""),
    re.compile(r"""import\s+["']([^"']+)["']\s+as\s+\w+\s*;"""),
    re.compile(r"""import\s*\{[^}]*\}\s*from\s+["']([^"']+)["']\s*;"""),
    re.compile(r"""import\s+\*\s+as\s+\w+\s+from\s+["']([^"']+)["']\s*;"""),
    re.compile(r"""import\s+\w+\s+from\s+["']([^"']+)["']\s*;"""),
    re.compile(r"""import\s+\w+\s*,\s*\{[^}]*\}\s*from\s+["']([^"']+)["']\s*;"""),
)

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*://)")


def strip_comments(content: str) -> str:
    """Remove ``//`` and ``/* */`` comments while leaving string literals intact.

    Newlines inside block comments are kept so line structure survives.
    """
    out: List[str] = []
    i = 0
    n = len(content)
    quote = ""
    while i < n:
        ch = content[i]
        if quote:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(content[i + 1])
                i += 2
                continue
            if ch == quote or ch == "\n":
                quote = ""
            i += 1
            continue
        if ch in ("'", '"'):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if content.startswith("//", i):
            end = content.find("\n", i)
            i = n if end == -1 else end
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            body = content[i:] if end == -1 else content[i:end + 2]
            out.append("\n" * body.count("\n"))
            i = n if end == -1 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def extract_imports(content: str) -> List[str]:
    """Return imported specifiers in source order, without duplicates."""
    clean = strip_comments(content)
    found = []
    for pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(clean):
            found.append((match.start(), match.group(1)))
    found.sort(key=lambda item: item[0])
    imports: List[str] = []
    for _, path in found:
        if path and path not in imports:
            imports.append(path)
    logger.debug("Extracted %d imports", len(imports))
    return imports


def resolve_relative_import(current_file: str, import_path: str) -> str:
    """Resolve ``./`` and ``../`` against the directory of ``current_file``.

    A URL scheme on ``current_file`` is kept, so relative imports inside a
    fetched URL stay URLs.
    """
    if not is_relative_import(import_path):
        return import_path
    match = _SCHEME.match(current_file)
    scheme = match.group(1) if match else ""
    rest = current_file[len(scheme):]
    current_dir = rest[:rest.rfind("/")] if "/" in rest else ""
    parts = [p for p in current_dir.split("/") if p]
    # the host (or content hash) of a URL is never climbed past
    floor = 1 if scheme and parts else 0
    for part in import_path.split("/"):
        if part == "..":
            if len(parts) > floor:
                parts.pop()
        elif part not in (".", ""):
            parts.append(part)
    resolved = scheme + "/".join(parts)
    logger.debug("Resolved relative import: %s -> %s", import_path, resolved)
    return resolved


_URL_CONTEXTS = (
    re.compile(r"^(https?://unpkg\.com/@?[^/]+(?:/[^@/]+)?@[^/]+)/"),
    re.compile(r"^(https?://cdn\.jsdelivr\.net/npm/@?[^/]+(?:/[^@/]+)?@[^/]+)/"),
    re.compile(r"^(https?://cdn\.jsdelivr\.net/gh/[^/]+/[^/@]+@[^/]+)/"),
    re.compile(r"^(https?://raw\.githubusercontent\.com/[^/]+/[^/]+/[^/]+)/"),
)
_GITHUB_BLOB_CONTEXT = re.compile(r"^https?://github\.com/([^/]+)/([^/]+)/blob/([^/]+)/")


def extract_url_context(path: str) -> Optional[str]:
    """Base of a remote specifier (CDN package root, GitHub ref, IPFS/Swarm hash)."""
    if path.startswith("ipfs://"):
        match = re.match(r"^ipfs://(?:ipfs/)?([^/]+)", path)
        return f"ipfs://{match.group(1)}" if match else None
    if path.startswith("bzz-raw://") or path.startswith("bzz://"):
        match = re.match(r"^(bzz(?:-raw)?://[^/]+)", path)
        return match.group(1) if match else None
    if not is_http_url(path):
        return None
    for pattern in _URL_CONTEXTS:
        match = pattern.match(path)
        if match:
            return match.group(1)
    match = _GITHUB_BLOB_CONTEXT.match(path)
    if match:
        owner, repo, ref = match.groups()
        return f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}"
    return None


_PKG_CONTEXTS = (
    re.compile(r"^(@[^/]+/[^/@]+)@([^/]+)"),
    re.compile(r"^([^/@]+)@([^/]+)"),
    re.compile(r"/(?:deps/npm/)?(@[^/]+/[^/@]+)@([^/]+)(?:/|$)"),
    re.compile(r"/(?:deps/npm/)?([^/@]+)@([^/]+)(?:/|$)"),
)


def extract_package_context(path: str) -> Optional[str]:
    """``name@version`` of the package a path belongs to, if it names one."""
    for idx, pattern in enumerate(_PKG_CONTEXTS):
        match = pattern.match(path) if idx < 2 else pattern.search(path)
        if match:
            return f"{match.group(1)}@{match.group(2)}"
    return None
