"""Outgoing HTTP response.

``ResponseSink`` is the contract the router writes to: a status code
and a ``send``. ``BufferedResponse`` is the concrete mutable sink used
by the ASGI host. Each ``send`` freezes the current state into a
``SentResponse`` snapshot.
"""

from __future__ import annotations

import dataclasses
import json as json_module
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from tern.errors import Halt

logger = logging.getLogger("tern.server")


@runtime_checkable
class ResponseSink(Protocol):
    """What the router and handlers write a response through.

    Setters return the sink so calls chain. ``send`` emits whatever
    state is current; with ``exit_after`` it also ends request
    processing by raising ``Halt``.
    """

    def set_status(self, code: int) -> ResponseSink: ...

    def set_headers(self, headers: Mapping[str, str]) -> ResponseSink: ...

    def set_body(self, body: Any) -> ResponseSink: ...

    def send(self, exit_after: bool = True) -> None: ...


@dataclass(frozen=True, slots=True)
class SentResponse:
    """An emitted response: status, headers, and encoded body."""

    status: int
    body: bytes = b""
    content_type: str | None = None
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """The body parsed as JSON."""
        return json_module.loads(self.body)

    def header(self, name: str) -> str | None:
        """First header value by case-insensitive name."""
        if name.lower() == "content-type":
            return self.content_type
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


class BufferedResponse:
    """A mutable response that is emitted on ``send``.

    Usage::

        response = BufferedResponse()
        response.set_status(201).set_body({"id": 7}).send(exit_after=False)
        response.sent  # SentResponse(status=201, body=b'{"id": 7}', ...)

    Body encoding: strings are sent verbatim as UTF-8 text, bytes as-is,
    ``None`` as an empty body, anything else as JSON. A ``Content-Type``
    set through ``set_headers`` overrides the inferred one.
    """

    __slots__ = ("_body", "_headers", "_on_send", "sent", "status")

    def __init__(
        self,
        default_status: int = 204,
        on_send: Callable[[SentResponse], object] | None = None,
    ) -> None:
        self.status = default_status
        self.sent: SentResponse | None = None
        self._body: Any = None
        self._headers: dict[str, str] = {}
        self._on_send = on_send

    def set_status(self, code: int) -> BufferedResponse:
        self.status = code
        return self

    def set_headers(self, headers: Mapping[str, str]) -> BufferedResponse:
        """Merge *headers* in. A name set twice keeps the latest value."""
        for name, value in headers.items():
            for existing in [key for key in self._headers if key.lower() == name.lower()]:
                del self._headers[existing]
            self._headers[name] = value
        return self

    def set_body(self, body: Any) -> BufferedResponse:
        self._body = body
        return self

    def snapshot(self) -> SentResponse:
        """Encode the current state without sending it."""
        body, content_type = _encode_body(self._body)
        headers: list[tuple[str, str]] = []
        for name, value in self._headers.items():
            if name.lower() == "content-type":
                content_type = value
            else:
                headers.append((name, value))
        return SentResponse(
            status=self.status,
            body=body,
            content_type=content_type,
            headers=tuple(headers),
        )

    def send(self, exit_after: bool = True) -> None:
        """Emit the current state. Only the first call emits.

        Raises ``Halt`` when *exit_after* is true.
        """
        if self.sent is not None:
            logger.warning("Response already sent with status %d; ignoring send()", self.sent.status)
        else:
            self.sent = self.snapshot()
            if self._on_send is not None:
                self._on_send(self.sent)
        if exit_after:
            raise Halt


def _encode_body(body: Any) -> tuple[bytes, str | None]:
    if body is None:
        return b"", None
    if isinstance(body, str):
        return body.encode("utf-8"), "text/plain; charset=utf-8"
    if isinstance(body, bytes | bytearray):
        return bytes(body), "application/octet-stream"
    return json_module.dumps(body, default=_json_default).encode("utf-8"), "application/json"


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
