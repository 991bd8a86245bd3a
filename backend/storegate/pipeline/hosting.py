"""
Storegate Backend - Pipeline Hosting
=====================================

What:  Runs the interceptor chain inside the ASGI stack, and wires the
       production chain from settings.
How:   RequestPipelineMiddleware is a plain ASGI middleware. For every http
       request it builds a RequestContext, runs the chain, and finally
       flushes whatever response is still held back. The chain's endpoint
       calls the wrapped ASGI app (FastAPI's exception middleware + router)
       with the context's scope and buffered send, so calling `call_next`
       twice routes the request twice.

       configure_request_pipeline() is the only place that knows concrete
       collaborator types; interceptors get them through __init__.

Placement in the ASGI stack (outermost first):
    ServerErrorMiddleware → RequestPipelineMiddleware → ExceptionMiddleware → Router
"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from starlette.types import ASGIApp, Receive, Scope, Send

from storegate.config import Settings
from storegate.middleware.error_page import ErrorPageInterceptor
from storegate.middleware.exception_audit import ExceptionAuditInterceptor
from storegate.middleware.install_url import InstallUrlInterceptor
from storegate.middleware.logging import AccessLogInterceptor
from storegate.middleware.powered_by import PoweredByInterceptor
from storegate.middleware.request_id import RequestIdInterceptor
from storegate.middleware.status_code import (
    BadRequestAuditInterceptor,
    PageNotFoundInterceptor,
)
from storegate.pipeline.chain import InterceptorChain
from storegate.pipeline.context import RequestContext
from storegate.services.actor_resolver import ActorResolver, FeatureActorResolver
from storegate.services.audit_logger import AuditLogger
from storegate.services.installation import installation_predicate
from storegate.services.static_resources import is_static_resource as default_static_predicate

logger = logging.getLogger(__name__)


class RequestPipelineMiddleware:
    """
    ASGI middleware hosting an InterceptorChain.

    Non-http scopes (lifespan, websocket) bypass the chain.
    """

    def __init__(self, app: ASGIApp, chain: InterceptorChain):
        self.app = app
        self.chain = chain
        self._handler = chain.build(self._invoke_endpoint)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = RequestContext(scope, receive, send)
        await self._handler(context)
        await context.response.complete()

    async def _invoke_endpoint(self, context: RequestContext) -> None:
        await self.app(context.scope, context.receive, context.response.send)


def build_interceptor_chain(
    settings: Settings,
    *,
    audit_logger: Optional[AuditLogger] = None,
    actor_resolver: Optional[ActorResolver] = None,
    is_store_installed: Optional[Callable[[], bool]] = None,
    is_static_resource: Optional[Callable[[str], bool]] = None,
) -> InterceptorChain:
    """
    Assemble the production chain.

    Every collaborator has a production default; tests override the ones
    they need to observe.
    """
    audit_logger = audit_logger or AuditLogger()
    actor_resolver = actor_resolver or FeatureActorResolver()
    is_store_installed = is_store_installed or installation_predicate(settings)
    is_static_resource = is_static_resource or default_static_predicate

    chain = InterceptorChain()
    chain.add(RequestIdInterceptor())
    chain.add(AccessLogInterceptor())
    if settings.powered_by_enabled:
        chain.add(PoweredByInterceptor(settings.powered_by_value))
    chain.add(
        ErrorPageInterceptor(
            settings.error_page_path,
            detailed=settings.use_detailed_error_page,
        )
    )
    chain.add(ExceptionAuditInterceptor(audit_logger, actor_resolver, is_store_installed))
    chain.add(PageNotFoundInterceptor(is_static_resource, path=settings.page_not_found_path))
    chain.add(BadRequestAuditInterceptor(audit_logger, actor_resolver, is_store_installed))
    chain.add(
        InstallUrlInterceptor(
            is_store_installed,
            is_static_resource,
            install_path=settings.install_path,
        )
    )
    return chain


def configure_request_pipeline(app: FastAPI, settings: Settings, **collaborators) -> InterceptorChain:
    """Register the request pipeline on `app`; returns the chain for inspection."""
    chain = build_interceptor_chain(settings, **collaborators)
    app.add_middleware(RequestPipelineMiddleware, chain=chain)
    logger.info("Request pipeline configured: %r", chain)
    return chain
