"""
Storegate Backend - Interceptor Chain
======================================

What:  The ordered list of interceptors wrapping every request.
How:   Each interceptor gets the RequestContext and a `call_next` delegate
       for the rest of the chain, the same shape as starlette's
       BaseHTTPMiddleware.dispatch(request, call_next). Composition is
       strictly nested: interceptor i wraps interceptors i+1..n and the
       endpoint, so they unwind in reverse order of entry.

Example:
    chain = InterceptorChain([ErrorPageInterceptor(...), PageNotFoundInterceptor(...)])
    handler = chain.build(endpoint)
    await handler(context)
        → ErrorPage.dispatch(context, call_next=PageNotFound)
            → PageNotFound.dispatch(context, call_next=endpoint)
"""

from functools import partial
from typing import Awaitable, Callable, Iterator, List, Sequence

from storegate.exceptions import PipelineConfigurationError
from storegate.pipeline.context import RequestContext

RequestDelegate = Callable[[RequestContext], Awaitable[None]]


class Interceptor:
    """
    Base class for pipeline stages.

    Subclasses override dispatch(). Calling `call_next(context)` runs the
    remainder of the chain; calling it again re-runs that remainder (this is
    how re-execution works). Collaborators are passed to __init__.
    """

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"


class InterceptorChain:
    """Ordered, outermost-first collection of interceptors."""

    def __init__(self, interceptors: Sequence[Interceptor] = ()):
        self._interceptors: List[Interceptor] = []
        for interceptor in interceptors:
            self.add(interceptor)

    def add(self, interceptor: Interceptor) -> "InterceptorChain":
        """Append `interceptor` as the new innermost stage."""
        if not isinstance(interceptor, Interceptor):
            raise PipelineConfigurationError(
                f"{interceptor!r} is not an Interceptor",
                context={"stage": repr(interceptor)},
            )
        self._interceptors.append(interceptor)
        return self

    def build(self, endpoint: RequestDelegate) -> RequestDelegate:
        """Compose the chain around `endpoint` and return the entry delegate."""
        handler = endpoint
        for interceptor in reversed(self._interceptors):
            handler = partial(interceptor.dispatch, call_next=handler)
        return handler

    def __iter__(self) -> Iterator[Interceptor]:
        return iter(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)

    def __repr__(self) -> str:
        stages = " -> ".join(type(i).__name__ for i in self._interceptors)
        return f"<InterceptorChain({stages})>"
