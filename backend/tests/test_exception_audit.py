"""
Storegate Backend - Exception Audit Interceptor Unit Tests
===========================================================

What:  Tests for ExceptionAuditInterceptor and audit_request().
How:   A synthetic RequestContext, a mock audit logger and a stub actor
       resolver; the downstream chain is a local coroutine.

What we test:
    ✅ No fault: pass-through, nothing audited
    ✅ API caller: 500 with the fault message, no audit, no re-raise
    ✅ Browser caller: one audit record, then the same fault re-raised
    ✅ Store not installed: no audit, still re-raised
    ✅ Audit, resolver or installation check failing never masks the fault
    ✅ Started response: API path gives up and re-raises
"""

import pytest

from storegate.middleware.exception_audit import ExceptionAuditInterceptor, audit_request
from storegate.pipeline.outcome import Outcome

BEARER = {"authorization": "Bearer abc123"}


class TestExceptionAuditPassThrough:

    @pytest.mark.asyncio
    async def test_no_fault_is_noop(self, make_context, respond, audit_logger, actor_resolver):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, send = make_context("/catalog")

        async def downstream(ctx):
            await respond(ctx, 200, b"catalog")

        await interceptor.dispatch(context, downstream)

        assert send.status == 200
        assert send.body == b"catalog"
        audit_logger.write.assert_not_awaited()
        actor_resolver.current_actor_id.assert_not_awaited()


class TestExceptionAuditApiCaller:

    def setup_method(self):
        self.fault = ValueError("Product 7 is out of stock")

    async def failing(self, context):
        raise self.fault

    @pytest.mark.asyncio
    async def test_api_fault_becomes_500_text(self, make_context, audit_logger, actor_resolver):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, send = make_context("/api/cart", headers=BEARER)

        await interceptor.dispatch(context, self.failing)

        assert send.status == 500
        assert send.body == b"Product 7 is out of stock"
        assert send.headers["content-type"] == "text/plain; charset=utf-8"
        assert context.response.is_completed
        audit_logger.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_fault_discards_partial_error_response(
        self, make_context, respond, audit_logger, actor_resolver
    ):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, send = make_context("/api/cart", headers=BEARER)

        async def partial_then_fail(ctx):
            await respond(ctx, 503, b"half written")
            raise self.fault

        await interceptor.dispatch(context, partial_then_fail)

        assert send.status == 500
        assert send.body == b"Product 7 is out of stock"

    @pytest.mark.asyncio
    async def test_api_fault_after_start_propagates(
        self, make_context, audit_logger, actor_resolver
    ):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, send = make_context("/api/export", headers=BEARER)

        async def stream_then_fail(ctx):
            await ctx.response.send({"type": "http.response.start", "status": 200, "headers": []})
            await ctx.response.send(
                {"type": "http.response.body", "body": b"row 1\n", "more_body": True}
            )
            raise self.fault

        with pytest.raises(ValueError) as excinfo:
            await interceptor.dispatch(context, stream_then_fail)

        assert excinfo.value is self.fault
        assert send.status == 200
        audit_logger.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_fault_returns_handled(self, make_context, audit_logger, actor_resolver):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, _ = make_context("/api/cart", headers=BEARER)

        outcome = await interceptor.handle_fault(context, self.fault)

        assert outcome == Outcome.handled()
        assert not outcome.propagates


class TestExceptionAuditBrowserCaller:

    def setup_method(self):
        self.fault = KeyError("sku-991")

    async def failing(self, context):
        raise self.fault

    @pytest.mark.asyncio
    async def test_audits_then_reraises_same_fault(
        self, make_context, audit_logger, actor_resolver
    ):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, send = make_context(
            "/checkout",
            query_string="step=2",
            headers={"referer": "http://testserver/cart"},
        )

        with pytest.raises(KeyError) as excinfo:
            await interceptor.dispatch(context, self.failing)

        assert excinfo.value is self.fault
        assert send.messages == []
        audit_logger.write.assert_awaited_once()
        record = audit_logger.write.await_args.args[0]
        assert record.message == str(self.fault)
        assert record.actor_id == "customer-42"
        assert record.level == "ERROR"
        assert "KeyError" in record.fault_detail
        assert record.page_url == "http://testserver/checkout?step=2"
        assert record.referrer_url == "http://testserver/cart"
        assert record.ip_address == "203.0.113.7"

    @pytest.mark.asyncio
    async def test_not_installed_skips_audit(self, make_context, audit_logger, actor_resolver):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: False)
        context, _ = make_context("/checkout")

        with pytest.raises(KeyError):
            await interceptor.dispatch(context, self.failing)

        audit_logger.write.assert_not_awaited()
        actor_resolver.current_actor_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_mask_fault(
        self, make_context, audit_logger, actor_resolver
    ):
        audit_logger.write.side_effect = RuntimeError("audit store exploded")
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, _ = make_context("/checkout")

        with pytest.raises(KeyError) as excinfo:
            await interceptor.dispatch(context, self.failing)

        assert excinfo.value is self.fault

    @pytest.mark.asyncio
    async def test_resolver_failure_does_not_mask_fault(
        self, make_context, audit_logger, actor_resolver
    ):
        actor_resolver.current_actor_id.side_effect = RuntimeError("session store down")
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: True)
        context, _ = make_context("/checkout")

        with pytest.raises(KeyError) as excinfo:
            await interceptor.dispatch(context, self.failing)

        assert excinfo.value is self.fault
        audit_logger.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_installation_check_failure_does_not_mask_fault(
        self, make_context, audit_logger, actor_resolver
    ):
        def broken_check():
            raise RuntimeError("config unreadable")

        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, broken_check)
        context, _ = make_context("/checkout")

        with pytest.raises(KeyError) as excinfo:
            await interceptor.dispatch(context, self.failing)

        assert excinfo.value is self.fault
        audit_logger.write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_fault_returns_propagate(
        self, make_context, audit_logger, actor_resolver
    ):
        interceptor = ExceptionAuditInterceptor(audit_logger, actor_resolver, lambda: False)
        context, _ = make_context("/checkout")

        outcome = await interceptor.handle_fault(context, self.fault)

        assert outcome.propagates
        assert outcome.fault is self.fault


class TestAuditRequest:

    @pytest.mark.asyncio
    async def test_record_without_fault_has_no_detail(
        self, make_context, audit_logger, actor_resolver
    ):
        context, _ = make_context("/search")

        written = await audit_request(context, audit_logger, actor_resolver, "Error 400. Bad request")

        assert written is True
        record = audit_logger.write.await_args.args[0]
        assert record.message == "Error 400. Bad request"
        assert record.fault_detail is None
        assert record.referrer_url is None

    @pytest.mark.asyncio
    async def test_reports_false_when_store_rejects(
        self, make_context, audit_logger, actor_resolver
    ):
        audit_logger.write.return_value = False
        context, _ = make_context("/search")

        assert await audit_request(context, audit_logger, actor_resolver, "x") is False
