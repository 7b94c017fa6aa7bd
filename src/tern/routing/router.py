"""Regex router with first-match-wins dispatch.

Routes are registered during setup, frozen on the first ``run()``, and
walked in registration order. The first pattern that fully matches the
path decides the outcome: its handler for the request verb runs, or the
error path fires. Later patterns are never consulted.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from tern._internal.types import ErrorHandler, Handler
from tern.config import RouterConfig
from tern.errors import Halt
from tern.http.request import IncomingRequest
from tern.http.response import ResponseSink
from tern.routing.methods import Method, parse_methods
from tern.routing.route import RouteEntry
from tern.routing.table import ErrorTable, RouteTable

logger = logging.getLogger("tern.routing")


class Router:
    """Dispatches one request to the first matching route.

    Handlers receive the pattern's captured groups as positional args
    and write their response through ``router.response``::

        def setup(router: Router) -> None:
            @router.get("/users/([0-9]+)")
            def show_user(user_id: str) -> None:
                router.response.set_body({"id": user_id}).send()

            router.mount("/admin", admin_routes)
            router.on_error(404, not_found)

        router = Router(request, response)
        setup(router)
        router.run()

    Registration methods take the handler directly or, when it is
    omitted, return a decorator.

    The router never owns its collaborators. Build one Router per
    request, or swap ``request``/``response`` between requests under
    external synchronization.
    """

    __slots__ = ("_errors", "_freeze_lock", "_routes", "config", "request", "response")

    def __init__(
        self,
        request: IncomingRequest,
        response: ResponseSink,
        config: RouterConfig | None = None,
    ) -> None:
        self.request = request
        self.response = response
        self.config = config or RouterConfig()
        self._routes = RouteTable()
        self._errors = ErrorTable(self.config.catch_all_pattern)
        self._freeze_lock = threading.Lock()

    # -- Registration --

    def match(
        self,
        methods: int | str | Iterable[str],
        pattern: str,
        handler: Handler | None = None,
    ) -> Any:
        """Register *handler* for every verb in *methods* at *pattern*.

        *methods* is a ``Method`` bitset (``Method.GET | Method.POST``),
        a verb name, or an iterable of verb names.
        """
        verbs = parse_methods(methods)

        def register(func: Handler) -> Handler:
            for verb in verbs:
                self._routes.register(pattern, verb, func)
            return func

        if handler is None:
            return register
        register(handler)
        return None

    def all(self, pattern: str, handler: Handler | None = None) -> Any:
        """Shorthand for a route accessed with any verb."""
        return self.match(Method.ALL, pattern, handler)

    def get(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.GET, pattern, handler)

    def post(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.POST, pattern, handler)

    def put(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.PUT, pattern, handler)

    def delete(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.DELETE, pattern, handler)

    def options(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.OPTIONS, pattern, handler)

    def patch(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.PATCH, pattern, handler)

    def head(self, pattern: str, handler: Handler | None = None) -> Any:
        return self.match(Method.HEAD, pattern, handler)

    def mount(self, base_path: str, setup: Callable[[Router], object]) -> None:
        """Register the routes and error handlers *setup* defines under *base_path*.

        *setup* receives a scratch Router sharing this router's request
        and response. Its tables are copied here with every pattern
        prefixed, then the scratch router is dropped.
        """
        scratch = Router(self.request, self.response, self.config)
        setup(scratch)
        scratch._routes.prefixed(base_path).merge_into(self._routes)
        scratch._errors.prefixed(base_path).merge_into(self._errors)

    def on_error(
        self,
        status: int,
        handler: ErrorHandler | None = None,
        pattern: str | None = None,
    ) -> Any:
        """Register an error handler for *status* on paths matching *pattern*.

        *pattern* defaults to the configured catch-all.
        """

        def register(func: ErrorHandler) -> ErrorHandler:
            self._errors.register(status, func, pattern)
            return func

        if handler is None:
            return register
        register(handler)
        return None

    @property
    def routes(self) -> tuple[RouteEntry, ...]:
        """Registered routes in dispatch order."""
        return self._routes.entries()

    # -- Dispatch --

    def run(self) -> bool:
        """Dispatch the current request.

        Returns True if a route handler ran. Returns False after
        triggering the error path. Routing misses never raise.
        """
        self._ensure_frozen()

        # Read once: mutating the request mid-dispatch must not reroute
        method = (self.request.method or "").upper()
        path = self.request.path

        found = self._routes.first_match(path)
        if found is None:
            logger.debug("No route matches %s %r", method, path)
            self._handle_error(self.config.not_found_status, path)
            return False

        handler = found.entry.handlers.get(method)
        if handler is None:
            allowed = found.entry.methods
            logger.debug("%r matches %r but not %s (allowed: %s)", path, found.entry.pattern, method, allowed)
            status = self.config.method_not_allowed_status
            if status is None:
                status = self.config.not_found_status
            else:
                self.response.set_headers({"Allow": ", ".join(allowed)})
            self._handle_error(status, path)
            return False

        try:
            handler(*found.args)
        except Halt:
            pass
        return True

    def trigger_error(self, status: int, path: str | None = None) -> None:
        """Run the error handler for *status* and send a bare status response.

        *path* defaults to the request path and selects which pattern's
        handler runs.
        """
        self._ensure_frozen()
        self._handle_error(status, self.request.path if path is None else path)

    def _handle_error(self, status: int, path: str) -> None:
        resolved = self._errors.resolve(status, path)
        if resolved is not None:
            entry, args = resolved
            logger.debug("Handling %d for %r with handler for %r", status, path, entry.pattern)
            try:
                entry.handler(*args)
            except Halt:
                return

        self.response.set_status(status).send(exit_after=False)

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._routes.frozen:
            return
        with self._freeze_lock:
            if self._routes.frozen:
                return
            self._errors.freeze()
            self._routes.freeze()
