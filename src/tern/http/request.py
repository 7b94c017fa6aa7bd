"""Incoming HTTP request.

``IncomingRequest`` is the structural contract the router reads: a
method and a path, nothing else. ``Request`` is the concrete frozen
implementation built by the ASGI host, with lazy body parsing and
CORS helpers that write their headers onto a ``ResponseSink``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from urllib.parse import parse_qs

from tern._internal.asgi import HTTPScope, Scope
from tern.errors import ConfigurationError, InvalidBodyError, InvalidContentTypeError
from tern.http.headers import Headers
from tern.http.response import ResponseSink

_FORM = "application/x-www-form-urlencoded"
_MULTIPART = "multipart/form-data"
_JSON = "application/json"


@runtime_checkable
class IncomingRequest(Protocol):
    """What the router needs from a request.

    ``path`` is the request path with no host. Whether the query string
    is stripped is up to the implementation.
    """

    @property
    def method(self) -> str | None: ...

    @property
    def path(self) -> str: ...


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata is frozen at creation. The body arrives fully read as
    ``content``; ``body()`` parses it on first access and caches the
    result.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: bytes = b""
    content: bytes = b""

    # Private: mutable cache for the parsed body
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def header(self, name: str) -> str | None:
        """Return a header value by case-insensitive name.

        A header sent more than once comes back comma-joined.
        """
        values = self.headers.get_list(name)
        return ", ".join(values) if values else None

    # -- Body access --

    def body(self) -> dict[str, Any]:
        """Parse the body into a dict according to its Content-Type.

        - missing or ``application/x-www-form-urlencoded``: form fields
          (a GET reads the query string instead)
        - ``multipart/form-data``: form fields, file parts skipped
        - ``application/json``: a JSON object

        Raises:
            InvalidContentTypeError: Any other Content-Type.
            InvalidBodyError: The JSON is malformed or not an object.
        """
        if "_body" in self._cache:
            return self._cache["_body"]

        raw_type = self.content_type or _FORM
        media_type = raw_type.split(";", 1)[0].strip().lower()

        if media_type == _FORM:
            source = self.query_string if self.method.upper() == "GET" else self.content
            result: dict[str, Any] = _parse_urlencoded(source)
        elif media_type == _MULTIPART:
            result = _parse_multipart(self.content, raw_type)
        elif media_type == _JSON:
            result = _parse_json(self.content)
        else:
            msg = f"Invalid Content-Type header: {raw_type!r}"
            raise InvalidContentTypeError(msg)

        self._cache["_body"] = result
        return result

    def required_params(self, names: Iterable[str]) -> dict[str, Any] | None:
        """Return ``{name: value}`` for *names* if every one is in the body.

        Returns None when any is missing.
        """
        body = self.body()
        wanted = list(names)
        if any(name not in body for name in wanted):
            return None
        return {name: body[name] for name in wanted}

    def optional_params(self, names: Iterable[str], minimum_keys: int = 0) -> dict[str, Any] | None:
        """Like ``required_params``, also requiring at least *minimum_keys* body keys."""
        if len(self.body()) < minimum_keys:
            return None
        return self.required_params(names)

    # -- CORS --

    def allow_origin(self, origins: Iterable[str] | None, response: ResponseSink) -> bool:
        """Write ``Access-Control-Allow-Origin`` for *origins* onto *response*.

        No origins sends ``null`` and refuses. ``"*"`` allows everyone.
        Otherwise the request's ``Origin`` is echoed back only when listed.
        """
        allowed = list(origins or ())
        if not allowed:
            response.set_headers({"Access-Control-Allow-Origin": "null"})
            return False
        if "*" in allowed:
            response.set_headers({"Access-Control-Allow-Origin": "*"})
            return True
        origin = self.header("origin")
        if origin is None or origin not in allowed:
            return False
        response.set_headers({"Access-Control-Allow-Origin": origin})
        return True

    def allow_methods(self, methods: Iterable[str], response: ResponseSink) -> bool:
        """Write ``Access-Control-Allow-Methods``; True if this request's verb is listed."""
        allowed = [method.upper() for method in methods]
        response.set_headers({"Access-Control-Allow-Methods": ", ".join(allowed)})
        return self.method.upper() in allowed

    def allow_headers(self, names: Iterable[str] | None, response: ResponseSink) -> list[str]:
        """Write ``Access-Control-Allow-Headers`` and return the names not allowed.

        The names checked are those a preflight lists in
        ``Access-Control-Request-Headers``, or the request's own header
        names when it carries none. Comparison ignores case.
        """
        allowed = list(names or ())
        response.set_headers({"Access-Control-Allow-Headers": ", ".join(allowed)})
        allowed_lower = {name.lower() for name in allowed}

        requested = [
            name.strip().lower()
            for value in self.headers.get_list("access-control-request-headers")
            for name in value.split(",")
            if name.strip()
        ]
        if not requested:
            requested = list(self.headers)
        return [name for name in requested if name not in allowed_lower]

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, content: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and the already-read body."""
        http = HTTPScope.from_scope(scope)
        return cls(
            method=http.method,
            path=http.path,
            headers=Headers(http.headers),
            query_string=http.query_string,
            content=content,
        )


def _parse_urlencoded(raw: bytes) -> dict[str, Any]:
    """Single values stay strings; repeated fields become lists."""
    parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
    return {name: values[0] if len(values) == 1 else values for name, values in parsed.items()}


def _parse_json(raw: bytes) -> dict[str, Any]:
    try:
        data = json_module.loads(raw)
    except (UnicodeDecodeError, json_module.JSONDecodeError) as exc:
        msg = "Invalid JSON in the body."
        raise InvalidBodyError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Expected a JSON object in the body, got {type(data).__name__}."
        raise InvalidBodyError(msg)
    return data


def _parse_multipart(raw: bytes, content_type: str) -> dict[str, Any]:
    """Parse multipart form fields using python-multipart.

    Raises ``ConfigurationError`` if ``python-multipart`` is not installed.
    """
    try:
        from python_multipart.multipart import MultipartParser, parse_options_header
    except ImportError:
        msg = (
            "Multipart form parsing requires the 'python-multipart' package. "
            "Install it with: pip install tern[forms]"
        )
        raise ConfigurationError(msg) from None

    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart body is missing the boundary parameter."
        raise InvalidBodyError(msg)

    fields: dict[str, list[str]] = {}
    part: dict[str, Any] = {}

    def on_part_begin() -> None:
        part.clear()
        part["data"] = bytearray()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part["data"].extend(chunk[start:end])

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        part["_field"] = chunk[start:end].decode("latin-1").lower()

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        if part.pop("_field", "") != "content-disposition":
            return
        _, params = parse_options_header(chunk[start:end])
        if b"name" in params:
            part["name"] = params[b"name"].decode("utf-8")
        if b"filename" in params:
            part["is_file"] = True

    def on_part_end() -> None:
        # File parts are not form fields
        if "name" not in part or part.get("is_file"):
            return
        fields.setdefault(part["name"], []).append(part["data"].decode("utf-8", errors="replace"))

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
        },
    )
    parser.write(raw)
    parser.finalize()

    return {name: values[0] if len(values) == 1 else values for name, values in fields.items()}
