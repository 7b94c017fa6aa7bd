"""ASGI response sending — translates a SentResponse to ASGI messages."""

from tern._internal.asgi import Send
from tern.http.response import SentResponse


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: SentResponse, send: Send) -> None:
    """Emit *response* as one ``http.response.start`` and one body message."""
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    body = response.body if _body_allowed(response.status) else b""

    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
