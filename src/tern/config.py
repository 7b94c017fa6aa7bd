"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, shared
between the Router and the ASGI host without copying.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(method_not_allowed_status=405)
    """

    # Error handler pattern used when on_error() is called without one
    catch_all_pattern: str = ".*"

    # Status triggered when no route matches (or the first match lacks the verb)
    not_found_status: int = 404

    # Set (e.g. 405) to distinguish "path known, verb missing" from not-found
    method_not_allowed_status: int | None = None

    # Status of a response no handler touched
    default_status: int = 204

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Run blocking dispatch in a worker thread instead of on the event loop
    offload_dispatch: bool = True
