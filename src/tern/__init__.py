"""Tern — a small regex router with first-match-wins dispatch.

Routes are regular expressions, matched against the whole path in
registration order. Captured groups become positional handler args.

Basic usage::

    from tern import App, Router

    def setup(router: Router) -> None:
        @router.get("/users/([0-9]+)")
        def show_user(user_id: str) -> None:
            router.response.set_status(200).set_body({"id": user_id}).send()

        router.on_error(404, lambda: router.response.set_body("Not here"))

    app = App(setup)
"""

__version__ = "0.1.0-dev"
__all__ = [
    "App",
    "BufferedResponse",
    "ConfigurationError",
    "Halt",
    "IncomingRequest",
    "Method",
    "Request",
    "ResponseSink",
    "Router",
    "RouterConfig",
    "SentResponse",
    "TernError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tern`` fast while providing a clean top-level API.
    """
    if name == "App":
        from tern.app import App

        return App

    if name == "Router":
        from tern.routing.router import Router

        return Router

    if name == "Method":
        from tern.routing.methods import Method

        return Method

    if name == "RouterConfig":
        from tern.config import RouterConfig

        return RouterConfig

    if name in ("Request", "IncomingRequest"):
        from tern.http import request as _req

        return getattr(_req, name)

    if name in ("BufferedResponse", "ResponseSink", "SentResponse"):
        from tern.http import response as _resp

        return getattr(_resp, name)

    if name in ("ConfigurationError", "Halt", "TernError"):
        from tern import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
