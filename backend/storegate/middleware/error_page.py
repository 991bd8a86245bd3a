"""
Storegate Backend - Error Page Interceptor
===========================================

What:  The outermost fault renderer: produces the human-facing page for
       faults the exception audit interceptor re-raised.
How:   Two modes, chosen once at startup:
       - detailed (development, or DISPLAY_FULL_ERROR_STACK=true): starlette's
         debug traceback page, status 500
       - friendly: re-executes the request against ERROR_PAGE_PATH with an
         ExceptionHandlerFeature attached, restoring the request afterwards

       If the response already reached the client, or the error page itself
       fails, the original fault is re-raised for the server to handle.
"""

import logging

from starlette.middleware.errors import ServerErrorMiddleware

from storegate.exceptions import PipelineConfigurationError
from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.context import RequestContext
from storegate.pipeline.features import ExceptionHandlerFeature
from storegate.pipeline.reexecute import rewritten_path

logger = logging.getLogger(__name__)


class ErrorPageInterceptor(Interceptor):
    """
    Args:
        error_path: Internal path rendering the friendly error page
        detailed:   Render the traceback page instead of re-executing
    """

    def __init__(self, error_path: str, detailed: bool = False):
        if not error_path.startswith("/"):
            raise PipelineConfigurationError(
                f"Error page path '{error_path}' must start with '/'",
                context={"path": error_path},
            )
        self._error_path = error_path
        self._detailed = detailed
        # Used only for its HTML renderer; never installed as middleware
        self._debug_renderer = ServerErrorMiddleware(app=None, debug=True)

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        try:
            await call_next(context)
        except Exception as exc:
            if context.response.has_started:
                logger.error(
                    "Response for %s already started; cannot render error page",
                    context.path,
                )
                raise

            logger.error(
                "Unhandled error on %s %s: %s",
                context.method,
                context.path,
                str(exc),
                exc_info=True,
            )
            context.response.clear()
            if self._detailed:
                self._render_detailed(context, exc)
                return

            try:
                await self._reexecute(context, exc, call_next)
            except Exception:
                logger.exception("Error page %s failed", self._error_path)
                raise exc

    def _render_detailed(self, context: RequestContext, exc: Exception) -> None:
        context.response.status_code = 500
        context.response.write(
            self._debug_renderer.generate_html(exc),
            media_type="text/html",
        )

    async def _reexecute(
        self, context: RequestContext, exc: Exception, call_next: RequestDelegate
    ) -> None:
        context.features.set(
            ExceptionHandlerFeature,
            ExceptionHandlerFeature(error=exc, path=context.path),
        )
        try:
            with rewritten_path(context, self._error_path):
                await call_next(context)
        finally:
            context.features.set(ExceptionHandlerFeature, None)
        # The error page endpoint answers 500 itself; anything else means
        # it was not reached (e.g. the route is missing)
        if context.response_status_code != 500 and not context.response.has_started:
            context.response.clear()
            context.response.status_code = 500
