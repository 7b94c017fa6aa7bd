"""RouteEntry, ErrorEntry, and RouteMatch frozen dataclasses."""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from tern._internal.types import ErrorHandler, Handler


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A frozen route: one pattern and its handlers keyed by verb.

    Produced when a RouteTable is frozen. ``handlers`` is a read-only
    view, so dispatch code cannot mutate the table it walks.
    """

    pattern: str
    regex: re.Pattern[str]
    handlers: Mapping[str, Handler]

    @property
    def methods(self) -> tuple[str, ...]:
        """Verbs registered for this pattern, in registration order."""
        return tuple(self.handlers)

    def match(self, path: str) -> tuple[str, ...] | None:
        """Return the captured groups if *path* fully matches, else None."""
        return _fullmatch(self.regex, path)


@dataclass(frozen=True, slots=True)
class ErrorEntry:
    """A frozen error handler bound to a status code and a path pattern."""

    status: int
    pattern: str
    regex: re.Pattern[str]
    handler: ErrorHandler

    def match(self, path: str) -> tuple[str, ...] | None:
        """Return the captured groups if *path* fully matches, else None."""
        return _fullmatch(self.regex, path)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful pattern match during dispatch.

    ``args`` are the captured groups in capture order, without the
    whole-match group. Unmatched optional groups are ``None``.
    """

    entry: RouteEntry
    args: tuple[str, ...]


def freeze_handlers(handlers: Mapping[str, Handler]) -> Mapping[str, Handler]:
    """Copy *handlers* into a read-only mapping."""
    return MappingProxyType(dict(handlers))


def _fullmatch(regex: re.Pattern[str], path: str) -> tuple[str, ...] | None:
    m = regex.fullmatch(path)
    if m is None:
        return None
    return m.groups()
