"""
Storegate Backend - Buffered Response
======================================

What:  The response half of a RequestContext. Sits between the downstream
       ASGI app and the real `send` callable.
How:   - http.response.start is recorded, never forwarded immediately
       - 1xx-3xx responses are streamed as soon as their first body chunk
         arrives
       - 4xx/5xx responses are held back until complete() so that an
         interceptor can inspect, discard, or replace them
       - on_starting callbacks run right before the status line goes out,
         which is the only point where headers can still be added

Lifecycle:
    ┌──────────┐  start(<400)+body  ┌─────────┐  more_body=False  ┌───────────┐
    │ pending  │ ─────────────────→ │ started │ ────────────────→ │ completed │
    └──────────┘                    └─────────┘                   └───────────┘
         │  start(>=400)+body: held           ↑
         └──────────── complete() ────────────┘
"""

from typing import Awaitable, Callable, List, Optional, Union

from starlette.datastructures import MutableHeaders
from starlette.types import Message, Send

from storegate.exceptions import ResponseStartedError

StartingCallback = Callable[[MutableHeaders], Union[None, Awaitable[None]]]


class BufferedResponse:
    """
    Response view handed to interceptors via `context.response`.

    Attributes:
        status_code: Last status set by downstream or by an interceptor
        headers:     Mutable response headers (starlette MutableHeaders)
    """

    # Responses at or above this status are held back until complete()
    HOLD_STATUS = 400

    def __init__(self, send: Send):
        self._send = send
        self.status_code: int = 200
        self.headers = MutableHeaders()
        self._chunks: List[bytes] = []
        self._rewritten = False
        self._started = False
        self._completed = False
        self._on_starting: List[StartingCallback] = []

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def has_started(self) -> bool:
        """True once the status line has been sent to the client."""
        return self._started

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def has_body(self) -> bool:
        """True when downstream (or an interceptor) produced body content."""
        if any(self._chunks):
            return True
        length = self.headers.get("content-length")
        return bool(length and length.strip() not in ("", "0"))

    @property
    def body(self) -> bytes:
        """Held-back body. Empty once the response has been streamed."""
        return b"".join(self._chunks)

    def on_starting(self, callback: StartingCallback) -> None:
        """Register `callback(headers)` to run before the status line is sent."""
        self._on_starting.append(callback)

    # ── ASGI send ─────────────────────────────────────────────────────────

    async def send(self, message: Message) -> None:
        """The `send` callable passed to the downstream ASGI app."""
        message_type = message["type"]

        if message_type == "http.response.start":
            if self._started:
                raise ResponseStartedError(self.status_code)
            self.status_code = message["status"]
            self.headers = MutableHeaders(raw=list(message.get("headers", [])))
            self._chunks = []
            self._rewritten = False
            return

        if message_type == "http.response.body":
            body = message.get("body", b"")
            more_body = message.get("more_body", False)
            if not self._started and self.status_code >= self.HOLD_STATUS:
                if body:
                    self._chunks.append(body)
                return
            await self._start()
            await self._send(
                {"type": "http.response.body", "body": body, "more_body": more_body}
            )
            if not more_body:
                self._completed = True
            return

        # Trailers, pathsend and other extensions pass straight through
        await self._send(message)

    # ── Interceptor API ───────────────────────────────────────────────────

    def clear(self) -> None:
        """
        Discard everything downstream produced so far.

        Raises:
            ResponseStartedError: the status line already reached the client.
        """
        if self._started:
            raise ResponseStartedError(self.status_code)
        self.status_code = 200
        self.headers = MutableHeaders()
        self._chunks = []
        self._rewritten = False

    def write(self, content: Union[str, bytes], media_type: Optional[str] = None) -> None:
        """Append `content` to the held-back body (UTF-8 for str)."""
        if self._started:
            raise ResponseStartedError(self.status_code)
        if isinstance(content, str):
            content = content.encode("utf-8")
            if media_type and "charset" not in media_type:
                media_type = f"{media_type}; charset=utf-8"
        if media_type:
            self.headers["content-type"] = media_type
        self._chunks.append(content)
        self._rewritten = True

    async def complete(self) -> None:
        """
        Send whatever is held back and finish the response.

        Idempotent. A response that was streamed is left alone; the
        downstream app already finished it.
        """
        if self._completed or self._started:
            return
        body = self.body
        if self._rewritten or "content-length" not in self.headers:
            self.headers["content-length"] = str(len(body))
        await self._start()
        await self._send({"type": "http.response.body", "body": body, "more_body": False})
        self._completed = True

    async def _start(self) -> None:
        if self._started:
            return
        for callback in self._on_starting:
            result = callback(self.headers)
            if result is not None:
                await result
        self._started = True
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.headers.raw,
            }
        )

    def __repr__(self) -> str:
        return (
            f"<BufferedResponse(status={self.status_code}, "
            f"started={self._started}, completed={self._completed})>"
        )
