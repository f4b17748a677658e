"""Organization repository — dedup candidates, snapshots and merge reparenting."""
import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Activity, Contact, Deal, EntityType, Note, Organization
from schemas.dedup import OrganizationCandidate, OrganizationSnapshot

logger = logging.getLogger(__name__)


async def list_candidates(
    session: AsyncSession, tenant_id: UUID
) -> list[OrganizationCandidate]:
    """Return the id/name/website projection of every org in the tenant.

    Ordered by creation time so detection pairs are stable between runs.
    """
    result = await session.execute(
        select(Organization.id, Organization.name, Organization.website)
        .where(Organization.tenant_id == tenant_id)
        .order_by(Organization.created_at, Organization.id)
    )
    return [
        OrganizationCandidate(id=row.id, name=row.name, website=row.website)
        for row in result.all()
    ]


async def _count_by(session: AsyncSession, column, ids: list[UUID]) -> dict[UUID, int]:
    result = await session.execute(
        select(column, func.count()).where(column.in_(ids)).group_by(column)
    )
    return {row[0]: row[1] for row in result.all()}


async def get_snapshots(
    session: AsyncSession, tenant_id: UUID, ids: Iterable[UUID]
) -> dict[UUID, OrganizationSnapshot]:
    """Batch-load snapshots for a set of org ids, keyed by id.

    One query for the rows plus one grouped count per related table,
    regardless of how many ids are requested. Missing ids are absent.
    """
    ids = list(set(ids))
    if not ids:
        return {}

    result = await session.execute(
        select(Organization)
        .where(Organization.tenant_id == tenant_id)
        .where(Organization.id.in_(ids))
    )
    orgs = list(result.scalars().all())
    if not orgs:
        return {}

    found = [org.id for org in orgs]
    contact_counts = await _count_by(session, Contact.primary_organization_id, found)
    deal_counts = await _count_by(session, Deal.organization_id, found)
    activity_counts = await _count_by(session, Activity.related_organization_id, found)

    snapshots = {}
    for org in orgs:
        snapshot = OrganizationSnapshot.model_validate(org)
        snapshots[org.id] = snapshot.model_copy(update={
            "contact_count": contact_counts.get(org.id, 0),
            "deal_count": deal_counts.get(org.id, 0),
            "activity_count": activity_counts.get(org.id, 0),
        })
    return snapshots


async def reassign_references(
    session: AsyncSession, tenant_id: UUID, from_id: UUID, to_id: UUID
) -> dict[str, int]:
    """Point every contact, deal, activity and note at to_id instead of from_id.

    Returns the number of rows rewritten per table. Must run inside the
    caller's transaction; nothing here commits.
    """
    counts = {}

    result = await session.execute(
        update(Contact)
        .where(Contact.tenant_id == tenant_id)
        .where(Contact.primary_organization_id == from_id)
        .values(primary_organization_id=to_id)
    )
    counts["contacts"] = result.rowcount

    result = await session.execute(
        update(Deal)
        .where(Deal.tenant_id == tenant_id)
        .where(Deal.organization_id == from_id)
        .values(organization_id=to_id)
    )
    counts["deals"] = result.rowcount

    result = await session.execute(
        update(Activity)
        .where(Activity.tenant_id == tenant_id)
        .where(Activity.related_organization_id == from_id)
        .values(related_organization_id=to_id)
    )
    counts["activities"] = result.rowcount

    result = await session.execute(
        update(Note)
        .where(Note.tenant_id == tenant_id)
        .where(Note.entity_type == EntityType.ORGANIZATION.value)
        .where(Note.entity_id == from_id)
        .values(entity_id=to_id)
    )
    counts["notes"] = result.rowcount

    await session.flush()
    logger.debug("Reparented org %s -> %s: %s", from_id, to_id, counts)
    return counts


async def delete(session: AsyncSession, tenant_id: UUID, org_id: UUID) -> bool:
    """Delete one organization. Returns False if it did not exist."""
    result = await session.execute(
        sa_delete(Organization)
        .where(Organization.tenant_id == tenant_id)
        .where(Organization.id == org_id)
    )
    await session.flush()
    return result.rowcount > 0


async def get_existing_ids(
    session: AsyncSession, tenant_id: UUID, ids: Iterable[UUID]
) -> set[UUID]:
    """Return the subset of ids that are organizations in this tenant."""
    result = await session.execute(
        select(Organization.id)
        .where(Organization.tenant_id == tenant_id)
        .where(Organization.id.in_(list(ids)))
    )
    return {row[0] for row in result.all()}
