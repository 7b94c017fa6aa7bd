"""Tern exception hierarchy.

Shared across the routing tables, Router, request parsing, and the ASGI
host so every module raises and catches the same types.

Routing misses are never exceptions: they degrade to a status response.
Exceptions are reserved for programmer errors at registration time and
for malformed request bodies.
"""


class TernError(Exception):
    """Base for all tern-specific errors."""


class ConfigurationError(TernError):
    """Raised when a route or error handler registration is invalid.

    Signalled immediately at the registration call site (unknown verb,
    non-callable handler, invalid pattern, registering after freeze),
    never deferred to dispatch time.
    """


class Halt(TernError):  # noqa: N818 — control-flow signal, not a failure
    """Raised by ``send(exit_after=True)`` to end request processing.

    The router and the ASGI host catch it and treat the response as
    already emitted.
    """


class InvalidContentTypeError(TernError):
    """The request Content-Type has no body parser."""


class InvalidBodyError(TernError):
    """The request body could not be parsed for its Content-Type."""
