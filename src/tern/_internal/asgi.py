"""Typed ASGI definitions.

Replaces the standard Scope = MutableMapping[str, Any] with a typed
dataclass for internal use. Users never see it.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, TypeAlias

# Raw ASGI types (matching the spec)
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class HTTPScope:
    """The slice of an ASGI HTTP scope that request building reads."""

    method: str
    path: str
    query_string: bytes
    headers: tuple[tuple[bytes, bytes], ...]

    @classmethod
    def from_scope(cls, scope: Scope) -> "HTTPScope":
        """Parse raw ASGI scope into typed object."""
        return cls(
            method=scope["method"],
            path=scope["path"],
            query_string=scope.get("query_string", b""),
            headers=tuple((bytes(name), bytes(value)) for name, value in scope.get("headers", ())),
        )

    @property
    def content_length(self) -> int | None:
        """The declared Content-Length, or None if absent or malformed."""
        for name, value in self.headers:
            if name.lower() == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None
