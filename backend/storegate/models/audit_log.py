"""
Storegate Backend - Audit Log SQLAlchemy Model
===============================================

What:  ORM model representing the `audit_log` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Written by AuditLogger; read only by operators and reporting tools.
When:  One row per audited fault or bad request. Rows are write-once.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL and
      the SQLite files used in tests)
    - short_message: the fault's message, what operators scan in lists
    - full_message: the formatted traceback, NULL for non-fault entries
    - actor_id: the customer/user the request ran as, when it could be resolved
    - page_url / referrer_url / ip_address: where the request came from

    Index on created_at DESC serves the "latest errors first" admin query.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from storegate.database import Base


class AuditLog(Base):
    """
    A single persisted audit entry.

    Lifecycle:
        Inserted by AuditLogger.write() inside its own short transaction.
        Never updated; the pipeline never reads it back.
    """

    __tablename__ = "audit_log"

    # ── Primary Key ───────────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    # ── Severity ──────────────────────────────────────────────────────────
    # Values mirror logging level names: INFO, WARNING, ERROR
    level: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="ERROR",
        server_default=text("'ERROR'"),
        comment="Severity of the entry",
    )

    # ── Messages ──────────────────────────────────────────────────────────
    short_message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Fault message or summary line",
    )
    full_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Formatted traceback of the fault, if any",
    )

    # ── Request Origin ────────────────────────────────────────────────────
    actor_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Identifier of the actor the request ran as",
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    page_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this entry was written (UTC)",
    )

    __table_args__ = (
        Index("idx_audit_log_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, level='{self.level}', "
            f"created_at='{self.created_at}')>"
        )
