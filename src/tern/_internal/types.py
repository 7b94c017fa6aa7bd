"""Shared type aliases used across tern modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler — called with the captured path groups as positional args
Handler: TypeAlias = Callable[..., Any]

# Error handler — same calling convention as a route handler
ErrorHandler: TypeAlias = Callable[..., Any]
