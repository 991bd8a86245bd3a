"""
Storegate Backend - Pydantic Schemas
=====================================

What:  Pydantic models for audit records and the health endpoint.
Why:   Audit records are built in the pipeline and persisted by the
       AuditLogger; keeping them as validated, frozen models means an
       interceptor cannot mutate a record after handing it over.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditRecord(BaseModel):
    """
    What:  One entry destined for the audit store.
    Who:   Built by ExceptionAuditInterceptor and BadRequestAuditInterceptor,
           consumed by AuditLogger.write().
    When:  Write-once; never read back by the pipeline.
    """

    model_config = ConfigDict(frozen=True)

    message: str = Field(description="Fault message or summary line")
    fault_detail: Optional[str] = Field(
        default=None, description="Formatted traceback of the fault"
    )
    actor_id: Optional[str] = Field(
        default=None, description="Actor the request ran as, when resolvable"
    )
    level: str = Field(default="ERROR", description="INFO, WARNING or ERROR")
    page_url: Optional[str] = None
    referrer_url: Optional[str] = None
    ip_address: Optional[str] = None


class HealthResponse(BaseModel):
    """
    What:  Liveness response for GET /health/live.
    Who:   Load balancers and container orchestrators.
    """

    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    database: str = Field(
        description="Audit store status: connected, disconnected, not_installed"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
