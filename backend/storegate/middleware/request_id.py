"""
Storegate Backend - Request ID Interceptor
===========================================

What:  Assigns a correlation ID to each request and echoes it in the response.
How:   Uses the client's X-Request-ID when present, otherwise a short UUID.
       The ID is stored in a ContextVar for loggers and in the scope's state
       (request.state.request_id) for endpoints.
When:  Outermost stage, so every log line of the request carries the ID,
       including those written while rendering error pages.
"""

import uuid
from contextvars import ContextVar

from starlette.datastructures import MutableHeaders

from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.context import RequestContext

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

HEADER_NAME = "X-Request-ID"


class RequestIdInterceptor(Interceptor):
    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        rid = context.headers.get(HEADER_NAME) or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        context.scope.setdefault("state", {})["request_id"] = rid

        def add_header(headers: MutableHeaders) -> None:
            headers[HEADER_NAME] = rid

        context.response.on_starting(add_header)
        try:
            await call_next(context)
        finally:
            request_id_var.reset(token)
