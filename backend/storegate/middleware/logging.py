"""
Storegate Backend - Access Log Interceptor
===========================================

What:  One log line per request with method, path, final status and duration.
How:   Runs outside every re-executing stage, so by the time it logs, the
       request's path has been restored: a 404 upgraded to the not-found
       page is logged under the path the client asked for.

Log Format:
    GET /unknown 404 3.2ms [a1b2c3d4] from 192.168.1.100

What we DON'T log: request bodies, query strings, Authorization headers.
"""

import logging
import time

from storegate.middleware.request_id import request_id_var
from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.context import RequestContext

logger = logging.getLogger("storegate.access")


class AccessLogInterceptor(Interceptor):
    """
    Logs each request at a level derived from its final status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.

    Args:
        skip_paths: Paths that are never logged (health probes)
    """

    def __init__(self, skip_paths=("/health/live",)):
        self._skip_paths = frozenset(skip_paths)

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        if context.path in self._skip_paths:
            await call_next(context)
            return

        start_time = time.perf_counter()
        status = 500
        try:
            await call_next(context)
            status = context.response_status_code
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._log(context, status, duration_ms)

    def _log(self, context: RequestContext, status: int, duration_ms: float) -> None:
        rid = request_id_var.get("")
        client_ip = context.client_host or "unknown"

        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            context.method,
            context.path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": context.method,
                "path": context.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
