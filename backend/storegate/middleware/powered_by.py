"""
Storegate Backend - X-Powered-By Header
========================================

What:  Adds `X-Powered-By: <value>` to every response when enabled.
How:   Registers an on_starting callback, so the header survives responses
       that are cleared and rebuilt (error pages, not-found re-execution).
"""

from starlette.datastructures import MutableHeaders

from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.context import RequestContext

HEADER_NAME = "X-Powered-By"


class PoweredByInterceptor(Interceptor):
    def __init__(self, value: str):
        self._value = value

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        context.response.on_starting(self._add_header)
        await call_next(context)

    def _add_header(self, headers: MutableHeaders) -> None:
        headers[HEADER_NAME] = self._value
