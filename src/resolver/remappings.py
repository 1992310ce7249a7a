"""Prefix remappings (``prefix=target``), as found in remappings.txt files."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from resolver.patterns import is_npm_protocol, is_relative_import

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Remapping:
    """Rewrite rule: specifiers starting with ``prefix`` get ``target`` instead."""
    prefix: str
    target: str
    context: Optional[str] = None


def _with_slash(value: str) -> str:
    return value if value.endswith("/") else f"{value}/"


def parse_remapping(line: str) -> Optional[Remapping]:
    """Parse one ``[context:]prefix=target`` entry; None when malformed."""
    idx = line.find("=")
    if idx == -1:
        return None
    left = line[:idx].strip()
    target = line[idx + 1:].strip()
    context = None
    # A colon before the '=' separates a context, unless it belongs to a scheme.
    colon = left.find(":")
    if colon != -1 and not left[colon:].startswith("://"):
        context = left[:colon].strip() or None
        left = left[colon + 1:].strip()
    if not left or not target:
        return None
    return Remapping(_with_slash(left), _with_slash(target), context)


def parse_remappings_file_content(content: str) -> List[Remapping]:
    """Parse remappings file content; blank, ``#`` and ``//`` lines are skipped."""
    result: List[Remapping] = []
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        remap = parse_remapping(line)
        if remap is None:
            logger.warning("Ignoring malformed remapping: %s", line)
            continue
        result.append(remap)
    return result


def normalize_remappings(items: Iterable[Union[str, Remapping]]) -> List[Remapping]:
    """Accept strings or Remapping objects and return normalized Remappings."""
    out: List[Remapping] = []
    for item in items or []:
        if isinstance(item, Remapping):
            if item.prefix and item.target:
                out.append(Remapping(_with_slash(item.prefix), _with_slash(item.target), item.context))
        elif isinstance(item, str):
            remap = parse_remapping(item)
            if remap is not None:
                out.append(remap)
    return out


def apply_remappings(import_path: str, remappings: Sequence[Remapping]) -> str:
    """Rewrite ``import_path`` with the longest matching prefix.

    Ties go to the earliest declaration. Relative and ``npm:`` specifiers
    are returned untouched so a ``x=npm:x`` rule cannot loop.
    """
    if is_relative_import(import_path) or is_npm_protocol(import_path):
        return import_path
    best: Optional[Remapping] = None
    for remap in remappings or []:
        if not import_path.startswith(remap.prefix):
            continue
        if best is None or len(remap.prefix) > len(best.prefix):
            best = remap
    if best is None:
        return import_path
    replaced = best.target + import_path[len(best.prefix):]
    logger.debug("Remapped import: %s -> %s", import_path, replaced)
    return replaced
