"""Async test client for tern applications.

Drives the ASGI interface directly — no sockets, no HTTP parsing.
Returns the same ``SentResponse`` type the router emits.
"""

from __future__ import annotations

import json as json_module
from typing import Any

from tern.app import App
from tern.http.response import SentResponse


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for tern applications.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/users/42")
            assert response.status == 200
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app.check()
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> SentResponse:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: dict[str, object] | None = None,
    ) -> SentResponse:
        """Send a POST request."""
        extra_headers: dict[str, str] = {}
        request_body = body or b""

        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"

        merged = {**extra_headers, **(headers or {})}
        return await self.request("POST", path, headers=merged, body=request_body)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> SentResponse:
        """Send a PUT request."""
        return await self.request("PUT", path, headers=headers, body=body)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> SentResponse:
        """Send a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> SentResponse:
        """Send an arbitrary request through the ASGI app."""
        path_part, _, query_string = path.partition("?")

        request_body = body or b""
        raw_headers: list[tuple[bytes, bytes]] = [
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in (headers or {}).items()
        ]
        if request_body:
            raw_headers.append((b"content-length", str(len(request_body)).encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal status, response_headers
            if message["type"] == "http.response.start":
                status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type: str | None = None
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name = name_b.decode("latin-1")
            value = value_b.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                extra_headers.append((name, value))

        return SentResponse(
            status=status,
            body=b"".join(body_parts),
            content_type=content_type,
            headers=tuple(extra_headers),
        )
