"""
Storegate Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions raised by the pipeline itself.
How:   Each exception class carries a message and optional context dict,
       mirroring how downstream faults are reported in audit records.

Exception Hierarchy:
    StoregateError (base)
    ├── PipelineConfigurationError  → raised at startup, never per request
    ├── ResponseStartedError        → response bytes already reached the client
    └── NotFoundError               → 404 with a JSON body (never rerouted)

Faults raised by endpoints are NOT wrapped in these types. The exception
audit interceptor re-raises them as-is so the outer error page (and the
server) sees the original type, message, and traceback.
"""

from typing import Any, Dict, Optional


class StoregateError(Exception):
    """
    Base exception for all Storegate application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged, never rendered)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class PipelineConfigurationError(StoregateError):
    """
    Raised when the interceptor chain is wired incorrectly.

    When:    Building a chain with a stage that is not an Interceptor, or
             configuring a re-execution target that is not an absolute path.
    """

    def __init__(
        self,
        message: str = "Request pipeline is misconfigured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ResponseStartedError(StoregateError):
    """
    Raised when an interceptor tries to clear or rewrite a response whose
    status line has already been sent to the client.

    Interceptors check `context.response.has_started` first; seeing this
    exception means a stage skipped that check.
    """

    def __init__(
        self,
        status_code: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["status_code"] = status_code
        super().__init__(
            message=f"Response with status {status_code} has already started",
            context=ctx,
        )
        self.status_code = status_code


class NotFoundError(StoregateError):
    """
    Raised by endpoints when a requested resource does not exist.

    HTTP:    404 Not Found with a JSON body. Because the body is present the
             page-not-found interceptor leaves these responses alone.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
