"""Audit log sink — best effort, never fails the caller."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import AuditLog
from schemas.dedup import AuditEntry

logger = logging.getLogger(__name__)


async def record(session: AsyncSession, entry: AuditEntry) -> bool:
    """Write one audit row inside a SAVEPOINT.

    A failed insert rolls back only the savepoint, is logged, and returns
    False; the surrounding transaction carries on.
    """
    try:
        async with session.begin_nested():
            session.add(AuditLog(**entry.model_dump()))
        return True
    except SQLAlchemyError:
        logger.exception(
            "Failed to write audit log: %s %s %s",
            entry.action, entry.entity_type, entry.entity_id,
        )
        return False
