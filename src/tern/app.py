"""ASGI host for a tern router.

Each HTTP request gets a fresh Request, BufferedResponse, and Router.
The setup callable registers routes on that Router, then dispatch runs
synchronously, off the event loop by default.
"""

import logging
from collections.abc import Callable

import anyio

from tern._internal.asgi import HTTPScope, Receive, Scope, Send
from tern.config import RouterConfig
from tern.errors import ConfigurationError
from tern.http.request import Request
from tern.http.response import BufferedResponse, SentResponse
from tern.routing.route import RouteEntry
from tern.routing.router import Router
from tern.server.sender import send_response

logger = logging.getLogger("tern.server")


class App:
    """ASGI 3.0 application wrapping a route setup function.

    Usage::

        def setup(router: Router) -> None:
            @router.get("/")
            def index() -> None:
                router.response.set_status(200).set_body("Hello, World!").send()

        app = App(setup)

    Serve ``app`` with any ASGI server.
    """

    __slots__ = ("config", "setup")

    def __init__(
        self,
        setup: Callable[[Router], object],
        config: RouterConfig | None = None,
    ) -> None:
        self.setup = setup
        self.config = config or RouterConfig()

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        http = HTTPScope.from_scope(scope)
        limit = self.config.max_content_length
        declared = http.content_length
        content = None if declared is not None and declared > limit else await _read_body(receive, limit)
        if content is None:
            logger.debug("413 %s %s", http.method, http.path)
            await send_response(SentResponse(status=413), send)
            return

        request = Request.from_asgi(scope, content)
        response = BufferedResponse(self.config.default_status)
        try:
            if self.config.offload_dispatch:
                await anyio.to_thread.run_sync(self.dispatch, request, response)
            else:
                self.dispatch(request, response)
        except Exception:
            if response.sent is None:
                logger.exception("500 %s %s", request.method, request.path)
            else:
                logger.exception(
                    "Handler raised after send (%d kept) %s %s",
                    response.sent.status,
                    request.method,
                    request.path,
                )

        await send_response(response.sent or SentResponse(status=500), send)

    # -- Dispatch --

    def dispatch(self, request: Request, response: BufferedResponse) -> bool:
        """Route one request. Blocking; runs in a worker thread by default.

        A handler that never called ``send`` gets its current response
        state flushed. Returns the router's result.
        """
        router = Router(request, response, self.config)
        self.setup(router)
        handled = router.run()
        if response.sent is None:
            logger.debug("%s %s handled without send(); flushing", request.method, request.path)
            response.send(exit_after=False)
        return handled

    def check(self) -> tuple[RouteEntry, ...]:
        """Run setup against a placeholder request and return the route table.

        Surfaces registration errors before the first request.
        """
        router = Router(Request(method="GET", path="/"), BufferedResponse(), self.config)
        self.setup(router)
        return router.routes

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    self.check()
                except ConfigurationError as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


async def _read_body(receive: Receive, limit: int) -> bytes | None:
    """Read the full request body. Returns None past *limit* bytes."""
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunk = message.get("body", b"")
        size += len(chunk)
        if size > limit:
            return None
        chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)
