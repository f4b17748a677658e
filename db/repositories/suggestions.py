"""Duplicate suggestion repository — pair lookup, batch insert, review lifecycle."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import DuplicateSuggestion, EntityType, SuggestionStatus
from schemas.dedup import NewSuggestion

logger = logging.getLogger(__name__)

# asyncpg caps one statement at 32767 bind parameters; a row binds 7
INSERT_BATCH_SIZE = 1000


async def get_known_pairs(
    session: AsyncSession,
    tenant_id: UUID,
    entity_type: EntityType,
    statuses: tuple[SuggestionStatus, ...] = (SuggestionStatus.PENDING,),
) -> set[tuple[UUID, UUID]]:
    """Return canonical (entity_id1, entity_id2) keys of suggestions in the given statuses.

    One query; the caller does O(1) membership tests against the result.
    """
    result = await session.execute(
        select(DuplicateSuggestion.entity_id1, DuplicateSuggestion.entity_id2)
        .where(DuplicateSuggestion.tenant_id == tenant_id)
        .where(DuplicateSuggestion.entity_type == entity_type.value)
        .where(DuplicateSuggestion.status.in_([s.value for s in statuses]))
    )
    return {(row[0], row[1]) for row in result.all()}


async def insert_many(
    session: AsyncSession,
    tenant_id: UUID,
    entity_type: EntityType,
    suggestions: list[NewSuggestion],
) -> int:
    """Insert staged suggestions in batches of INSERT_BATCH_SIZE rows.

    Returns rows actually inserted. Rows that collide with an existing
    PENDING suggestion for the same pair (for example from a concurrent
    detection run) are skipped by the partial unique index rather than
    raising.
    """
    if not suggestions:
        return 0
    rows = [
        {
            "tenant_id": tenant_id,
            "entity_type": entity_type.value,
            "entity_id1": s.entity_id1,
            "entity_id2": s.entity_id2,
            "similarity_score": s.similarity_score,
            "status": SuggestionStatus.PENDING.value,
        }
        for s in suggestions
    ]
    inserted = 0
    for start in range(0, len(rows), INSERT_BATCH_SIZE):
        stmt = (
            pg_insert(DuplicateSuggestion)
            .values(rows[start:start + INSERT_BATCH_SIZE])
            .on_conflict_do_nothing(
                index_elements=["tenant_id", "entity_type", "entity_id1", "entity_id2"],
                index_where=text("status = 'PENDING'"),
            )
            .returning(DuplicateSuggestion.id)
        )
        result = await session.execute(stmt)
        inserted += len(result.fetchall())
    await session.flush()
    if inserted < len(rows):
        logger.info(
            "Skipped %d %s suggestions already pending for tenant %s",
            len(rows) - inserted, entity_type.value, tenant_id,
        )
    return inserted


async def list_pending(
    session: AsyncSession, tenant_id: UUID, entity_type: EntityType
) -> list[DuplicateSuggestion]:
    """Return PENDING suggestions for the tenant, highest similarity first."""
    result = await session.execute(
        select(DuplicateSuggestion)
        .where(DuplicateSuggestion.tenant_id == tenant_id)
        .where(DuplicateSuggestion.entity_type == entity_type.value)
        .where(DuplicateSuggestion.status == SuggestionStatus.PENDING.value)
        .order_by(DuplicateSuggestion.similarity_score.desc(), DuplicateSuggestion.created_at)
    )
    return list(result.scalars().all())


async def get_for_tenant(
    session: AsyncSession, tenant_id: UUID, suggestion_id: UUID
) -> Optional[DuplicateSuggestion]:
    """Return the suggestion if it belongs to this tenant, or None."""
    result = await session.execute(
        select(DuplicateSuggestion)
        .where(DuplicateSuggestion.id == suggestion_id)
        .where(DuplicateSuggestion.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def mark_reviewed(
    session: AsyncSession,
    tenant_id: UUID,
    suggestion_id: UUID,
    status: SuggestionStatus,
    reviewed_by_user_id: UUID,
    reviewed_at: datetime,
) -> Optional[DuplicateSuggestion]:
    """Move a PENDING suggestion to a terminal status.

    Returns None when the suggestion is no longer PENDING, so a concurrent
    reviewer cannot flip a terminal row.
    """
    result = await session.execute(
        update(DuplicateSuggestion)
        .where(DuplicateSuggestion.id == suggestion_id)
        .where(DuplicateSuggestion.tenant_id == tenant_id)
        .where(DuplicateSuggestion.status == SuggestionStatus.PENDING.value)
        .values(
            status=status.value,
            reviewed_by_user_id=reviewed_by_user_id,
            reviewed_at=reviewed_at,
        )
        .returning(DuplicateSuggestion)
    )
    await session.flush()
    return result.scalar_one_or_none()
