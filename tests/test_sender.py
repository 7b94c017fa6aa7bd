"""Tests for tern.server.sender response emission rules."""

import pytest

from tern.http.response import SentResponse
from tern.server.sender import send_response


async def _collect(response: SentResponse) -> list[dict]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    await send_response(response, send)
    return messages


class TestSendResponse:
    @pytest.mark.anyio
    async def test_200_preserves_body(self) -> None:
        messages = await _collect(SentResponse(status=200, body=b"ok", content_type="text/plain; charset=utf-8"))

        assert messages[0]["type"] == "http.response.start"
        assert messages[0]["status"] == 200
        headers = dict(messages[0]["headers"])
        assert headers[b"content-type"] == b"text/plain; charset=utf-8"
        assert headers[b"content-length"] == b"2"
        assert messages[1] == {"type": "http.response.body", "body": b"ok"}

    @pytest.mark.anyio
    async def test_bare_status_has_no_content_type(self) -> None:
        messages = await _collect(SentResponse(status=404))

        headers = dict(messages[0]["headers"])
        assert b"content-type" not in headers
        assert headers[b"content-length"] == b"0"

    @pytest.mark.anyio
    async def test_extra_headers_lowercased(self) -> None:
        messages = await _collect(SentResponse(status=405, headers=(("Allow", "GET, POST"),)))

        assert (b"allow", b"GET, POST") in messages[0]["headers"]

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [101, 204, 304])
    async def test_no_body_statuses_drop_body(self, status: int) -> None:
        messages = await _collect(SentResponse(status=status, body=b"unexpected-body"))

        headers = dict(messages[0]["headers"])
        assert headers[b"content-length"] == b"0"
        assert messages[1]["body"] == b""
