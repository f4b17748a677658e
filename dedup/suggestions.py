"""Pending suggestion listing with batched entity snapshots."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import EntityType
from db.repositories import suggestions as suggestions_repo
from dedup.registry import entity_repository
from schemas.dedup import SuggestionView

logger = logging.getLogger(__name__)


async def list_suggestions(
    session: AsyncSession, tenant_id: UUID, entity_type: EntityType
) -> list[SuggestionView]:
    """Return PENDING suggestions, best score first, with both entity snapshots.

    Snapshots are fetched with a single id-set lookup for all suggestions.
    A deleted entity yields a None snapshot instead of failing the listing.
    """
    entity_type = EntityType(entity_type)
    pending = await suggestions_repo.list_pending(session, tenant_id, entity_type)
    if not pending:
        return []

    ids = {s.entity_id1 for s in pending} | {s.entity_id2 for s in pending}
    snapshots = await entity_repository(entity_type).get_snapshots(session, tenant_id, ids)

    missing = ids - snapshots.keys()
    if missing:
        logger.warning(
            "%d %s entities referenced by pending suggestions no longer exist (tenant %s)",
            len(missing), entity_type.value, tenant_id,
        )

    return [
        SuggestionView(
            id=s.id,
            tenant_id=s.tenant_id,
            entity_type=s.entity_type,
            entity_id1=s.entity_id1,
            entity_id2=s.entity_id2,
            similarity_score=s.similarity_score,
            status=s.status,
            created_at=s.created_at,
            entity1=snapshots.get(s.entity_id1),
            entity2=snapshots.get(s.entity_id2),
        )
        for s in pending
    ]
