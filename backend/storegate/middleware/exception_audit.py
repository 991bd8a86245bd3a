"""
Storegate Backend - Exception Audit Interceptor
================================================

What:  Turns unhandled faults from downstream into either a terse
       machine-readable response or an audited, re-raised fault.
How:   dispatch() awaits the rest of the chain; on any Exception it asks
       handle_fault() for an Outcome:

       ┌──────────────┐  API caller       ┌─────────────────────────────┐
       │ fault raised │ ────────────────→ │ 500, body = str(fault), done │
       └──────────────┘                   └─────────────────────────────┘
              │ browser caller
              ↓
       ┌──────────────────────────┐  always  ┌───────────────────────────┐
       │ audit (if store installed)│ ───────→ │ re-raise original fault   │
       └──────────────────────────┘          └───────────────────────────┘

       The re-raise is a bare `raise` inside the except block, so the error
       page and server see the original exception object.
Who:   Sits inside ErrorPageInterceptor, outside PageNotFoundInterceptor,
       so faults from a 404 re-execution are classified here too.

Guarantees:
    - No fault: pure pass-through
    - API path never writes an audit record and never re-raises
    - Browser path attempts at most one audit write, then re-raises
    - Failures resolving the actor or writing the record are logged and
      swallowed; they never replace the original fault
"""

import logging
import traceback
from typing import Callable, Optional

from storegate.pipeline.chain import Interceptor, RequestDelegate
from storegate.pipeline.classifier import CallerClass, classify_caller
from storegate.pipeline.context import RequestContext
from storegate.pipeline.outcome import Outcome
from storegate.schemas.audit import AuditRecord
from storegate.services.actor_resolver import ActorResolver
from storegate.services.audit_logger import AuditLogger

logger = logging.getLogger(__name__)


def store_is_installed(is_store_installed: Callable[[], bool]) -> bool:
    """Evaluate the installation predicate; a failing check counts as not installed."""
    try:
        return bool(is_store_installed())
    except Exception:
        logger.exception("Store installation check failed")
        return False


async def audit_request(
    context: RequestContext,
    audit_logger: AuditLogger,
    actor_resolver: ActorResolver,
    message: str,
    fault: Optional[BaseException] = None,
) -> bool:
    """
    Resolve the current actor and write one audit record for `context`.

    Never raises for resolver or store failures.

    Returns:
        True if the record was persisted.
    """
    try:
        actor_id = await actor_resolver.current_actor_id(context)
        record = AuditRecord(
            message=message,
            fault_detail="".join(traceback.format_exception(fault)) if fault else None,
            actor_id=actor_id,
            page_url=str(context.url),
            referrer_url=context.headers.get("referer"),
            ip_address=context.client_host,
        )
        return await audit_logger.write(record)
    except Exception:
        logger.exception("Could not write audit record for %s %s", context.method, context.path)
        return False


class ExceptionAuditInterceptor(Interceptor):
    """
    Args:
        audit_logger:       Durable error log
        actor_resolver:     Resolves the actor id for audit records
        is_store_installed: Audit writes are skipped while this returns False
    """

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
        try:
            await call_next(context)
        except Exception as exc:
            outcome = await self.handle_fault(context, exc)
            if outcome.propagates:
                raise

    async def handle_fault(self, context: RequestContext, fault: Exception) -> Outcome:
        """Classify the caller and decide how `fault` leaves the pipeline."""
        if classify_caller(context.headers) is CallerClass.API:
            return await self._respond_to_api_caller(context, fault)

        if store_is_installed(self._is_store_installed):
            await audit_request(
                context,
                self._audit_logger,
                self._actor_resolver,
                message=str(fault),
                fault=fault,
            )
        return Outcome.propagate(fault)

    async def _respond_to_api_caller(self, context: RequestContext, fault: Exception) -> Outcome:
        response = context.response
        if response.has_started:
            logger.warning(
                "Response for %s already started; cannot report %s to API caller",
                context.path,
                type(fault).__name__,
            )
            return Outcome.propagate(fault)

        response.clear()
        response.status_code = 500
        response.write(str(fault), media_type="text/plain")
        logger.info("API fault on %s %s: %s", context.method, context.path, fault)
        try:
            await response.complete()
        except Exception:
            # Client went away mid-write; nothing left to tell it
            logger.warning("Could not deliver fault response for %s", context.path, exc_info=True)
        return Outcome.handled()
