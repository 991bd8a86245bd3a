"""
Storegate Backend - Status Code Interceptors
=============================================

What:  Interceptors that act on the status code the rest of the chain
       produced, after it returns.

PageNotFoundInterceptor state machine (per request):

    Idle ──(404, no body, browser, not static, not re-executing)──→ Triggered
    Triggered ──(discard held 404, capture original request)──→ Rerouted
    Rerouted ──(call_next returns OR raises)──→ Restoring
    Restoring: original path base / path / query string written back,
               StatusCodeReExecuteFeature removed, fault (if any) re-raised

    The re-invocation calls the same `call_next` this interceptor was given,
    i.e. the chain *after* it. A 404 from /page-not-found therefore cannot
    trigger a second reroute.

BadRequestAuditInterceptor:
    Records "Error 400. Bad request" with the current actor whenever the
    chain ends in a 400, so malformed client traffic shows up in the audit
    log next to real faults.
"""

import logging
from typing import Callable

from storegate.exceptions import PipelineConfigurationError
from storegate.middleware.exception_audit import audit_request, store_is_installed
from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.classifier import CallerClass, classify_caller
from storegate.pipeline.context import RequestContext
from storegate.pipeline.features import StatusCodeReExecuteFeature
from storegate.pipeline.reexecute import reexecution
from storegate.services.actor_resolver import ActorResolver
from storegate.services.audit_logger import AuditLogger

logger = logging.getLogger(__name__)

PAGE_NOT_FOUND_PATH = "/page-not-found"
BAD_REQUEST_MESSAGE = "Error 400. Bad request"


class PageNotFoundInterceptor(Interceptor):
    """
    Upgrades bodiless 404s for browser callers to the rendered not-found page.

    Args:
        is_static_resource: Paths for which a plain 404 is kept (assets)
        path:               Internal path to re-execute, default /page-not-found
    """

    STATUS_CODE = 404

    def __init__(
        self,
        is_static_resource: Callable[[str], bool],
        path: str = PAGE_NOT_FOUND_PATH,
    ):
        if not path.startswith("/"):
            raise PipelineConfigurationError(
                f"Re-execution path '{path}' must start with '/'",
                context={"path": path},
            )
        self._is_static_resource = is_static_resource
        self._path = path

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        await call_next(context)

        if not self.should_reexecute(context):
            return

        # Drop the held-back empty 404 so the re-executed response replaces it
        context.response.clear()
        with reexecution(context, self._path) as feature:
            await call_next(context)
        logger.info(
            "Re-executed %s as %s, status %d",
            feature.original_path,
            self._path,
            context.response_status_code,
        )

    def should_reexecute(self, context: RequestContext) -> bool:
        response = context.response
        if response.status_code != self.STATUS_CODE:
            return False
        if response.has_started or response.has_body:
            return False
        if StatusCodeReExecuteFeature in context.features:
            return False
        if classify_caller(context.headers) is CallerClass.API:
            return False
        return not self._is_static_resource(context.path)


class BadRequestAuditInterceptor(Interceptor):
    """
    Args:
        audit_logger:       Durable error log
        actor_resolver:     Resolves the actor id for the record
        is_store_installed: Nothing is recorded while this returns False
    """

    STATUS_CODE = 400

    def __init__(
        self,
        audit_logger: AuditLogger,
        actor_resolver: ActorResolver,
        is_store_installed: Callable[[], bool],
    ):
        self._audit_logger = audit_logger
        self._actor_resolver = actor_resolver
        self._is_store_installed = is_store_installed

    async def dispatch(self, context: RequestContext, call_next: RequestDelegate) -> None:
        await call_next(context)

        if context.response_status_code != self.STATUS_CODE:
            return
        if not store_is_installed(self._is_store_installed):
            return
        await audit_request(
            context,
            self._audit_logger,
            self._actor_resolver,
            message=BAD_REQUEST_MESSAGE,
        )
