"""
Storegate Backend - Request Context
====================================

What:  Per-request mutable view handed to every interceptor.
How:   Wraps the ASGI scope instead of copying it. Writing `context.path`
       writes `scope["path"]`, so the downstream router (and any endpoint
       that builds a starlette Request from the scope) sees the rewrite.
Who:   Created by RequestPipelineMiddleware at request entry; dropped at exit.

Ownership:
    One context per request. Never shared across requests and never
    copied; re-execution mutates it in place and restores it afterwards.
"""

from typing import Optional

from starlette.datastructures import URL, Headers
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from storegate.pipeline.features import FeatureCollection
from storegate.pipeline.response import BufferedResponse


class RequestContext:
    """
    Request data plus the response buffer and feature bag.

    Attributes:
        scope:    The live ASGI scope
        receive:  The ASGI receive callable
        response: BufferedResponse wrapping the real send
        features: Typed feature bag stored inside the scope
    """

    def __init__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            raise ValueError(f"RequestContext needs an http scope, got {scope['type']!r}")
        self.scope = scope
        self.receive = receive
        self.response = BufferedResponse(send)
        self.features = FeatureCollection.of_scope(scope)

    # ── Request line ──────────────────────────────────────────────────────

    @property
    def method(self) -> str:
        return self.scope["method"]

    @property
    def path_base(self) -> str:
        """The ASGI root_path the application is mounted under."""
        return self.scope.get("root_path", "")

    @path_base.setter
    def path_base(self, value: str) -> None:
        self.scope["root_path"] = value

    @property
    def path(self) -> str:
        return self.scope["path"]

    @path.setter
    def path(self, value: str) -> None:
        self.scope["path"] = value

    @property
    def query_string(self) -> str:
        """Decoded query string without the leading '?'; empty when absent."""
        return self.scope.get("query_string", b"").decode("latin-1")

    @query_string.setter
    def query_string(self, value: Optional[str]) -> None:
        self.scope["query_string"] = (value or "").encode("latin-1")

    @property
    def headers(self) -> Headers:
        """Request headers; `headers.getlist(name)` keeps repeated values in order."""
        return Headers(scope=self.scope)

    # ── Derived ───────────────────────────────────────────────────────────

    @property
    def response_status_code(self) -> int:
        return self.response.status_code

    @property
    def url(self) -> URL:
        return URL(scope=self.scope)

    @property
    def client_host(self) -> Optional[str]:
        client = self.scope.get("client")
        return client[0] if client else None

    def request(self) -> Request:
        """A starlette Request over the same scope, for code that expects one."""
        return Request(self.scope, self.receive)

    def __repr__(self) -> str:
        return f"<RequestContext({self.method} {self.path_base}{self.path})>"
