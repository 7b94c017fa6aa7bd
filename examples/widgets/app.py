"""Widgets — a JSON API built from regex routes and a mounted sub-router.

CRUD for an in-memory "widgets" resource under ``/api``. Demonstrates
captured path groups as handler args, ``Method`` bitsets, ``mount``,
and per-prefix error handlers.

Run with any ASGI server:
    cd examples/widgets && uvicorn app:app
"""

import threading
from dataclasses import dataclass

from tern import App, Method, Router, RouterConfig

# ---------------------------------------------------------------------------
# In-memory storage
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Widget:
    id: int
    name: str


_widgets: dict[int, Widget] = {}
_next_id = 1
_lock = threading.Lock()


def _create(name: str) -> Widget:
    global _next_id
    with _lock:
        widget = Widget(id=_next_id, name=name)
        _widgets[widget.id] = widget
        _next_id += 1
        return widget


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def widgets_api(router: Router) -> None:
    request = router.request
    response = router.response

    @router.get("/widgets")
    def list_widgets() -> None:
        with _lock:
            items = sorted(_widgets.values(), key=lambda w: w.id)
        response.set_status(200).set_body({"data": items}).send()

    @router.post("/widgets")
    def create_widget() -> None:
        params = request.required_params(["name"])
        if params is None:
            response.set_body({"error": "name is required"})
            router.trigger_error(422)
            return
        response.set_status(201).set_body(_create(params["name"])).send()

    @router.match(Method.GET | Method.HEAD, "/widgets/([0-9]+)")
    def show_widget(widget_id: str) -> None:
        widget = _widgets.get(int(widget_id))
        if widget is None:
            router.trigger_error(404)
            return
        response.set_status(200).set_body(widget).send()

    @router.delete("/widgets/([0-9]+)")
    def delete_widget(widget_id: str) -> None:
        with _lock:
            removed = _widgets.pop(int(widget_id), None)
        response.set_status(204 if removed else 404).send()

    @router.on_error(404)
    def api_not_found() -> None:
        response.set_body({"error": "no such widget"})


def setup(router: Router) -> None:
    router.get("/", lambda: router.response.set_status(200).set_body("widgets example").send())
    router.mount("/api", widgets_api)
    router.on_error(404, lambda: router.response.set_body("Not Found"))


app = App(setup, RouterConfig(method_not_allowed_status=405))
