"""
Storegate Backend - Buffered Response Unit Tests
=================================================

What:  Tests for BufferedResponse, the held-back response under every
       interceptor.

What we test:
    ✅ 2xx/3xx bodies stream as soon as they arrive
    ✅ 4xx/5xx are held until complete(), and can be cleared or rewritten
    ✅ on_starting callbacks run once, right before the status line
    ✅ Clearing or restarting a streamed response raises
"""

import pytest

from storegate.exceptions import ResponseStartedError


class TestStreaming:
    """Responses below 400 go straight through."""

    @pytest.mark.asyncio
    async def test_success_streams_immediately(self, make_context, respond):
        context, send = make_context()

        await respond(context, 200, b"hello")

        assert send.status == 200
        assert send.body == b"hello"
        assert context.response.has_started
        assert context.response.is_completed

    @pytest.mark.asyncio
    async def test_complete_after_stream_is_noop(self, make_context, respond):
        context, send = make_context()
        await respond(context, 200, b"hello")

        await context.response.complete()

        assert len(send.messages) == 2

    @pytest.mark.asyncio
    async def test_second_start_raises(self, make_context, respond):
        context, _ = make_context()
        await respond(context, 200, b"hello")

        with pytest.raises(ResponseStartedError):
            await context.response.send(
                {"type": "http.response.start", "status": 500, "headers": []}
            )

    @pytest.mark.asyncio
    async def test_clear_after_start_raises(self, make_context, respond):
        context, _ = make_context()
        await respond(context, 200, b"hello")

        with pytest.raises(ResponseStartedError) as excinfo:
            context.response.clear()
        assert excinfo.value.status_code == 200


class TestHolding:
    """Responses at or above 400 wait for complete()."""

    @pytest.mark.asyncio
    async def test_error_is_held(self, make_context, respond):
        context, send = make_context()

        await respond(context, 404, b"missing")

        assert send.messages == []
        assert context.response.status_code == 404
        assert context.response.body == b"missing"
        assert context.response.has_body
        assert not context.response.has_started

    @pytest.mark.asyncio
    async def test_complete_flushes_held_response(self, make_context, respond):
        context, send = make_context()
        await respond(context, 404, b"missing")

        await context.response.complete()

        assert send.status == 404
        assert send.body == b"missing"
        assert send.headers["content-length"] == "7"
        assert context.response.is_completed

    @pytest.mark.asyncio
    async def test_empty_error_has_no_body(self, make_context, respond):
        context, _ = make_context()

        await respond(context, 404)

        assert not context.response.has_body

    @pytest.mark.asyncio
    async def test_content_length_counts_as_body(self, make_context):
        context, _ = make_context()

        await context.response.send(
            {"type": "http.response.start", "status": 404, "headers": [(b"content-length", b"12")]}
        )

        assert context.response.has_body

    @pytest.mark.asyncio
    async def test_clear_discards_held_response(self, make_context, respond):
        context, _ = make_context()
        await respond(context, 404, b"missing")

        context.response.clear()

        assert context.response.status_code == 200
        assert context.response.body == b""
        assert "content-type" not in context.response.headers

    @pytest.mark.asyncio
    async def test_write_replaces_body(self, make_context, respond):
        context, send = make_context()
        await respond(context, 500, b"original body")

        context.response.clear()
        context.response.status_code = 500
        context.response.write("boom", media_type="text/plain")
        await context.response.complete()

        assert send.status == 500
        assert send.body == b"boom"
        assert send.headers["content-type"] == "text/plain; charset=utf-8"
        assert send.headers["content-length"] == "4"

    @pytest.mark.asyncio
    async def test_complete_without_downstream_sends_empty_response(self, make_context):
        context, send = make_context()
        context.response.status_code = 302
        context.response.headers["location"] = "/install"

        await context.response.complete()

        assert send.status == 302
        assert send.headers["location"] == "/install"
        assert send.headers["content-length"] == "0"


class TestOnStarting:
    """Header callbacks."""

    @pytest.mark.asyncio
    async def test_callbacks_run_before_status_line(self, make_context, respond):
        context, send = make_context()
        calls = []

        def add_header(headers):
            calls.append("sync")
            headers["x-one"] = "1"

        async def add_async_header(headers):
            calls.append("async")
            headers["x-two"] = "2"

        context.response.on_starting(add_header)
        context.response.on_starting(add_async_header)
        await respond(context, 200, b"ok")
        await context.response.complete()

        assert calls == ["sync", "async"]
        assert send.headers["x-one"] == "1"
        assert send.headers["x-two"] == "2"

    @pytest.mark.asyncio
    async def test_callbacks_survive_clear(self, make_context, respond):
        context, send = make_context()
        context.response.on_starting(lambda headers: headers.__setitem__("x-kept", "yes"))
        await respond(context, 404)

        context.response.clear()
        context.response.status_code = 500
        await context.response.complete()

        assert send.headers["x-kept"] == "yes"
