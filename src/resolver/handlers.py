"""Pluggable handlers that intercept special import patterns.

A handler matches an import either by a string pattern (exact, suffix, or
``*`` wildcard) or by a compiled regular expression, and may produce the
content itself instead of letting the resolver fetch it.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Union

from adapters.io_adapter import IOAdapter
from constants import Constants

logger = logging.getLogger(__name__)

HandlerPattern = Union[str, Pattern[str]]


@dataclass(frozen=True)
class HandlerContext:
    import_path: str
    target_file: str
    target_path: Optional[str] = None


@dataclass(frozen=True)
class HandlerResult:
    handled: bool
    content: Optional[str] = None
    resolved_path: Optional[str] = None


def _wildcard_to_regex(pattern: str) -> Pattern[str]:
    return re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")


class ImportHandler(ABC):
    """Base class for import handlers; higher ``priority`` runs first."""

    priority = 0

    def __init__(self, pattern: HandlerPattern):
        self.pattern = pattern

    def can_handle(self, import_path: str) -> bool:
        if isinstance(self.pattern, str):
            if "*" in self.pattern:
                return bool(_wildcard_to_regex(self.pattern).match(import_path))
            return import_path == self.pattern or import_path.endswith(self.pattern)
        return bool(self.pattern.search(import_path))

    @abstractmethod
    def handle(self, context: HandlerContext) -> HandlerResult:
        """Produce content for ``context.import_path`` or decline."""

    def describe(self) -> str:
        if isinstance(self.pattern, str):
            return self.pattern
        return self.pattern.pattern


class ImportHandlerRegistry:
    """Ordered collection of handlers consulted before normal resolution."""

    def __init__(self):
        self._handlers: List[ImportHandler] = []

    def register(self, handler: ImportHandler) -> None:
        self._handlers.append(handler)
        # Stable sort keeps registration order within one priority.
        self._handlers.sort(key=lambda h: h.priority, reverse=True)
        logger.debug("Registered handler for %s (priority %s)", handler.describe(), handler.priority)

    def unregister(self, handler: ImportHandler) -> bool:
        if handler in self._handlers:
            self._handlers.remove(handler)
            logger.debug("Unregistered handler for %s", handler.describe())
            return True
        return False

    def clear(self) -> None:
        self._handlers = []

    @property
    def handlers(self) -> List[ImportHandler]:
        return list(self._handlers)

    def try_handle(self, context: HandlerContext) -> Optional[HandlerResult]:
        """Return the first result a matching handler accepts, or None.

        A handler that raises is logged and skipped.
        """
        for handler in self._handlers:
            if not handler.can_handle(context.import_path):
                continue
            logger.debug("Handler %s matched %s", handler.describe(), context.import_path)
            try:
                result = handler.handle(context)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.warning("Handler %s failed for %s: %s", handler.describe(), context.import_path, exc)
                continue
            if result.handled:
                return result
            logger.debug("Handler %s declined %s", handler.describe(), context.import_path)
        return None


class TemplateHandler(ImportHandler):
    """Generate content from a callable and persist it under ``.deps/custom/``."""

    def __init__(
        self,
        pattern: HandlerPattern,
        io: IOAdapter,
        template: Callable[[str, HandlerContext], str],
        priority: int = 0,
    ):
        super().__init__(pattern)
        self.io = io
        self.template = template
        self.priority = priority

    def handle(self, context: HandlerContext) -> HandlerResult:
        content = self.template(context.import_path, context)
        target = context.target_path or f"{Constants.DEPS_CUSTOM_DIR}{context.import_path}"
        self.io.set_file(target, content)
        logger.info("Generated %s -> %s", context.import_path, target)
        return HandlerResult(True, content=content, resolved_path=target)
