"""
Storegate Backend - Audit Logger
=================================

What:  Appends AuditRecords to the `audit_log` table.
How:   One short transaction per record, using the shared async session
       factory. Store failures are logged and reported as False, never
       raised: a broken audit store must not change how a request ends.
Who:   ExceptionAuditInterceptor and BadRequestAuditInterceptor.
When:  On browser-facing faults and on 400 responses, when the store is
       installed.

Failure Handling:
    SQLAlchemyError  → connection refused, missing table, constraint error
    OSError          → socket-level failures surfaced by the driver
    Both are logged at WARNING with the record's message and swallowed.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storegate.database import get_session_factory
from storegate.models.audit_log import AuditLog
from storegate.schemas.audit import AuditRecord

logger = logging.getLogger(__name__)

SessionFactoryProvider = Callable[[], async_sessionmaker[AsyncSession]]


class AuditLogger:
    """
    Durable error log backed by the audit store.

    Args:
        session_factory: Provider of an async_sessionmaker. Defaults to the
                         application's lazily-created factory; tests pass
                         one bound to a temporary SQLite database.
    """

    def __init__(self, session_factory: Optional[SessionFactoryProvider] = None):
        self._session_factory = session_factory or get_session_factory

    async def write(self, record: AuditRecord) -> bool:
        """
        Persist `record`.

        Returns:
            True if the row was committed, False if the store failed.
        """
        entry = AuditLog(
            level=record.level,
            short_message=record.message,
            full_message=record.fault_detail,
            actor_id=record.actor_id,
            ip_address=record.ip_address,
            page_url=record.page_url,
            referrer_url=record.referrer_url,
        )
        try:
            async with self._session_factory()() as session:
                session.add(entry)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(
                "Audit store write failed for %r: %s",
                record.message,
                str(e),
            )
            return False

        logger.debug("Audit record %s written: %s", entry.id, record.message)
        return True
