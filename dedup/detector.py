"""Candidate generation — pairwise scoring of every entity in a tenant.

Detection is O(n) reads, O(n^2) in-memory comparisons and one batch write.
Pairs already known to the suggestion store are skipped without scoring.
"""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import EntityType, SuggestionStatus
from db.repositories import suggestions as suggestions_repo
from dedup.registry import entity_repository
from dedup.scoring import SIMILARITY_THRESHOLD, pair_key, score
from schemas.dedup import DetectionResult, NewSuggestion

logger = logging.getLogger(__name__)

# Dismissed pairs stay dismissed; only MERGED pairs cannot recur anyway
KNOWN_STATUSES = (SuggestionStatus.PENDING, SuggestionStatus.DISMISSED)


def find_candidate_pairs(
    entity_type: EntityType,
    candidates: list,
    known: set[tuple[UUID, UUID]],
    threshold: float = SIMILARITY_THRESHOLD,
) -> list[NewSuggestion]:
    """Score every unordered pair and stage the ones at or above threshold.

    known is updated in place as pairs are staged.
    """
    staged = []
    for i in range(len(candidates)):
        for j in range(i + 1, len(candidates)):
            a, b = candidates[i], candidates[j]
            if a.id == b.id:
                continue
            key = pair_key(a.id, b.id)
            if key in known:
                continue
            similarity = score(entity_type, a, b)
            if similarity < threshold:
                continue
            known.add(key)
            staged.append(NewSuggestion(
                entity_id1=key[0],
                entity_id2=key[1],
                similarity_score=similarity,
            ))
    return staged


async def detect_duplicates(
    session: AsyncSession, tenant_id: UUID, entity_type: EntityType
) -> DetectionResult:
    """Create PENDING suggestions for new likely-duplicate pairs.

    Returns the number of suggestions actually created, which is zero when
    nothing new was found.
    """
    entity_type = EntityType(entity_type)
    repo = entity_repository(entity_type)

    candidates = await repo.list_candidates(session, tenant_id)
    known = await suggestions_repo.get_known_pairs(
        session, tenant_id, entity_type, statuses=KNOWN_STATUSES
    )
    staged = find_candidate_pairs(entity_type, candidates, known)
    created = await suggestions_repo.insert_many(session, tenant_id, entity_type, staged)

    logger.info(
        "Duplicate detection for %s in tenant %s: %d entities, %d new suggestions",
        entity_type.value, tenant_id, len(candidates), created,
    )
    return DetectionResult(detected=created)


async def detect_organization_duplicates(session: AsyncSession, tenant_id: UUID) -> DetectionResult:
    return await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)


async def detect_contact_duplicates(session: AsyncSession, tenant_id: UUID) -> DetectionResult:
    return await detect_duplicates(session, tenant_id, EntityType.CONTACT)
