"""Ordered route and error-handler tables.

Both tables are built during setup and frozen into immutable tuples of
entries before dispatch. Pattern order is registration order: dispatch
is first-match-wins, not most-specific-match.
"""

from __future__ import annotations

import functools
import logging
import re

from tern._internal.types import ErrorHandler, Handler
from tern.errors import ConfigurationError
from tern.routing.route import ErrorEntry, RouteEntry, RouteMatch, freeze_handlers

logger = logging.getLogger("tern.routing")


@functools.lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a route pattern once. Matching uses ``fullmatch``.

    Raises ``ConfigurationError`` if *pattern* is not a valid regex.
    """
    try:
        return re.compile(pattern)
    except re.error as exc:
        msg = f"Invalid route pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc


def _check_handler(handler: object, pattern: str) -> None:
    if not callable(handler):
        msg = f"Handler for {pattern!r} must be callable, got {type(handler).__name__}."
        raise ConfigurationError(msg)


class RouteTable:
    """Ordered mapping of pattern -> {verb: handler}.

    Usage::

        table = RouteTable()
        table.register("/users/([0-9]+)", "GET", show_user)
        table.freeze()
        match = table.first_match("/users/42")
    """

    __slots__ = ("_frozen", "_routes")

    def __init__(self) -> None:
        self._routes: dict[str, dict[str, Handler]] = {}
        self._frozen: tuple[RouteEntry, ...] | None = None

    def register(self, pattern: str, verb: str, handler: Handler) -> None:
        """Insert or overwrite the handler at (pattern, verb).

        A new pattern is appended; an existing one keeps its position.
        """
        self._check_not_frozen()
        _check_handler(handler, pattern)
        compile_pattern(pattern)

        handlers = self._routes.setdefault(pattern, {})
        if verb in handlers:
            logger.debug("Replacing %s handler for %r", verb, pattern)
        handlers[verb] = handler

    def prefixed(self, base_path: str) -> RouteTable:
        """Return a new table with *base_path* prepended to every pattern.

        Plain string concatenation — slashes are the caller's business.
        Verb maps are copied, never shared.
        """
        table = RouteTable()
        for pattern, handlers in self._routes.items():
            for verb, handler in handlers.items():
                table.register(base_path + pattern, verb, handler)
        return table

    def merge_into(self, target: RouteTable) -> None:
        """Append this table's entries onto *target*, keeping their order."""
        for pattern, handlers in self._routes.items():
            for verb, handler in handlers.items():
                target.register(pattern, verb, handler)

    def freeze(self) -> None:
        """Compile into immutable entries. No more registrations allowed."""
        if self._frozen is not None:
            return
        self._frozen = tuple(
            RouteEntry(pattern=pattern, regex=compile_pattern(pattern), handlers=freeze_handlers(handlers))
            for pattern, handlers in self._routes.items()
        )

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def entries(self) -> tuple[RouteEntry, ...]:
        """All entries in registration order.

        Frozen tables return the same tuple every call. Unfrozen tables
        return a fresh snapshot.
        """
        if self._frozen is not None:
            return self._frozen
        return tuple(
            RouteEntry(pattern=pattern, regex=compile_pattern(pattern), handlers=freeze_handlers(handlers))
            for pattern, handlers in self._routes.items()
        )

    def first_match(self, path: str) -> RouteMatch | None:
        """Return the earliest-registered entry whose pattern matches *path*."""
        for entry in self.entries():
            args = entry.match(path)
            if args is not None:
                return RouteMatch(entry=entry, args=args)
        return None

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._routes

    def _check_not_frozen(self) -> None:
        if self._frozen is not None:
            msg = (
                "Cannot register routes after the router has started dispatching. "
                "Register everything before calling run()."
            )
            raise ConfigurationError(msg)


class ErrorTable:
    """Error handlers keyed by status code, then by ordered pattern.

    Resolution is first-registered-wins among the patterns for a status
    code that fully match the path. ``catch_all`` is the pattern used
    when ``register`` is called without one.
    """

    __slots__ = ("_frozen", "_handlers", "catch_all")

    def __init__(self, catch_all: str = ".*") -> None:
        self.catch_all = catch_all
        self._handlers: dict[int, dict[str, ErrorHandler]] = {}
        self._frozen: dict[int, tuple[ErrorEntry, ...]] | None = None

    def register(self, status: int, handler: ErrorHandler, pattern: str | None = None) -> None:
        """Set the handler for (*status*, *pattern*). Last write wins."""
        if self._frozen is not None:
            msg = "Cannot register error handlers after the router has started dispatching."
            raise ConfigurationError(msg)
        if pattern is None:
            pattern = self.catch_all
        _check_handler(handler, pattern)
        compile_pattern(pattern)

        by_pattern = self._handlers.setdefault(status, {})
        if pattern in by_pattern:
            logger.debug("Replacing %d error handler for %r", status, pattern)
        by_pattern[pattern] = handler

    def prefixed(self, base_path: str) -> ErrorTable:
        """Return a new table with *base_path* prepended to every pattern."""
        table = ErrorTable(self.catch_all)
        for status, by_pattern in self._handlers.items():
            for pattern, handler in by_pattern.items():
                table.register(status, handler, base_path + pattern)
        return table

    def merge_into(self, target: ErrorTable) -> None:
        """Append this table's handlers onto *target*, per status code."""
        for status, by_pattern in self._handlers.items():
            for pattern, handler in by_pattern.items():
                target.register(status, handler, pattern)

    def freeze(self) -> None:
        """Compile into immutable entries. No more registrations allowed."""
        if self._frozen is None:
            self._frozen = self._compile()

    def entries(self, status: int) -> tuple[ErrorEntry, ...]:
        """Handlers for *status* in registration order."""
        compiled = self._frozen if self._frozen is not None else self._compile()
        return compiled.get(status, ())

    def resolve(self, status: int, path: str) -> tuple[ErrorEntry, tuple[str, ...]] | None:
        """Return the first handler for *status* whose pattern matches *path*.

        The second item is the captured groups, passed on as handler args.
        """
        for entry in self.entries(status):
            args = entry.match(path)
            if args is not None:
                return entry, args
        return None

    def __len__(self) -> int:
        return sum(len(by_pattern) for by_pattern in self._handlers.values())

    def _compile(self) -> dict[int, tuple[ErrorEntry, ...]]:
        return {
            status: tuple(
                ErrorEntry(status=status, pattern=pattern, regex=compile_pattern(pattern), handler=handler)
                for pattern, handler in by_pattern.items()
            )
            for status, by_pattern in self._handlers.items()
        }
