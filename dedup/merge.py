"""Merge and dismiss — the two ways a PENDING suggestion is closed.

A merge reparents every reference from the duplicate to the primary, deletes
the duplicate and closes the suggestion inside one SAVEPOINT. Either all of
it is visible to the outer transaction or none of it is.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import DuplicateSuggestion, EntityType, SuggestionStatus
from db.repositories import audit as audit_repo
from db.repositories import suggestions as suggestions_repo
from dedup.errors import (
    EntityNotFoundError,
    InvalidPrimaryError,
    MergeTransactionError,
    SuggestionAlreadyReviewedError,
    SuggestionNotFoundError,
)
from dedup.registry import entity_repository
from schemas.dedup import AuditEntry

logger = logging.getLogger(__name__)

MERGE_ACTION = "MERGE"


async def _load_pending(
    session: AsyncSession, tenant_id: UUID, suggestion_id: UUID
) -> DuplicateSuggestion:
    suggestion = await suggestions_repo.get_for_tenant(session, tenant_id, suggestion_id)
    if suggestion is None:
        raise SuggestionNotFoundError(suggestion_id)
    if suggestion.status != SuggestionStatus.PENDING.value:
        raise SuggestionAlreadyReviewedError(suggestion_id, suggestion.status)
    return suggestion


def _duplicate_of(suggestion: DuplicateSuggestion, primary_id: UUID) -> UUID:
    if primary_id == suggestion.entity_id1:
        return suggestion.entity_id2
    if primary_id == suggestion.entity_id2:
        return suggestion.entity_id1
    raise InvalidPrimaryError(primary_id, suggestion.id)


async def merge_suggestion(
    session: AsyncSession,
    suggestion_id: UUID,
    primary_id: UUID,
    tenant_id: UUID,
    acting_user_id: UUID,
    reviewed_at: Optional[datetime] = None,
) -> dict[str, int]:
    """Merge the suggestion's duplicate entity into primary_id.

    Returns the per-table count of reparented rows.

    Raises:
        SuggestionNotFoundError: no such suggestion for this tenant.
        SuggestionAlreadyReviewedError: suggestion is MERGED or DISMISSED.
        InvalidPrimaryError: primary_id is not one of the suggestion's entities.
        EntityNotFoundError: one of the two entities no longer exists.
        MergeTransactionError: the database rejected part of the merge;
            nothing was written.
    """
    suggestion = await _load_pending(session, tenant_id, suggestion_id)
    duplicate_id = _duplicate_of(suggestion, primary_id)
    entity_type = EntityType(suggestion.entity_type)
    repo = entity_repository(entity_type)

    existing = await repo.get_existing_ids(session, tenant_id, [primary_id, duplicate_id])
    for entity_id in (primary_id, duplicate_id):
        if entity_id not in existing:
            raise EntityNotFoundError(entity_type.value, entity_id)

    reviewed_at = reviewed_at or datetime.now(timezone.utc)
    try:
        async with session.begin_nested():
            counts = await repo.reassign_references(session, tenant_id, duplicate_id, primary_id)
            if not await repo.delete(session, tenant_id, duplicate_id):
                raise EntityNotFoundError(entity_type.value, duplicate_id)
            closed = await suggestions_repo.mark_reviewed(
                session, tenant_id, suggestion_id,
                SuggestionStatus.MERGED, acting_user_id, reviewed_at,
            )
            if closed is None:
                raise SuggestionAlreadyReviewedError(suggestion_id)
    except SQLAlchemyError as exc:
        logger.exception(
            "Merge of %s %s into %s rolled back (suggestion %s)",
            entity_type.value, duplicate_id, primary_id, suggestion_id,
        )
        raise MergeTransactionError(suggestion_id, str(exc)) from exc

    logger.info(
        "Merged %s %s into %s (suggestion %s): %s",
        entity_type.value, duplicate_id, primary_id, suggestion_id, counts,
    )

    await audit_repo.record(session, AuditEntry(
        tenant_id=tenant_id,
        user_id=acting_user_id,
        entity_type=entity_type.value,
        entity_id=primary_id,
        action=MERGE_ACTION,
        before_data={"duplicateId": str(duplicate_id)},
        after_data={"primaryId": str(primary_id)},
    ))
    return counts


async def dismiss_suggestion(
    session: AsyncSession,
    suggestion_id: UUID,
    tenant_id: UUID,
    acting_user_id: UUID,
    reviewed_at: Optional[datetime] = None,
) -> None:
    """Close the suggestion as DISMISSED without touching either entity."""
    await _load_pending(session, tenant_id, suggestion_id)
    closed = await suggestions_repo.mark_reviewed(
        session, tenant_id, suggestion_id,
        SuggestionStatus.DISMISSED, acting_user_id,
        reviewed_at or datetime.now(timezone.utc),
    )
    if closed is None:
        raise SuggestionAlreadyReviewedError(suggestion_id)
    logger.info("Dismissed duplicate suggestion %s", suggestion_id)
