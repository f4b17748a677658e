"""Contact repository — dedup candidates, snapshots and merge reparenting."""
import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete as sa_delete
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import ActivityContact, Contact, ContactEmail, DealContact, EntityType, Note
from schemas.dedup import ContactCandidate, ContactSnapshot

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.lower().strip()


async def list_candidates(session: AsyncSession, tenant_id: UUID) -> list[ContactCandidate]:
    """Return name, organization and email projection of every contact in the tenant."""
    result = await session.execute(
        select(Contact)
        .options(selectinload(Contact.emails))
        .where(Contact.tenant_id == tenant_id)
        .order_by(Contact.created_at, Contact.id)
    )
    return [
        ContactCandidate(
            id=contact.id,
            first_name=contact.first_name or "",
            last_name=contact.last_name or "",
            primary_organization_id=contact.primary_organization_id,
            emails=frozenset(_normalize_email(e.email) for e in contact.emails) - {""},
        )
        for contact in result.scalars().all()
    ]


async def get_snapshots(
    session: AsyncSession, tenant_id: UUID, ids: Iterable[UUID]
) -> dict[UUID, ContactSnapshot]:
    """Batch-load snapshots for a set of contact ids, keyed by id.

    Emails and the primary organization are loaded with selectinload, so the
    query count does not grow with the number of ids.
    """
    ids = list(set(ids))
    if not ids:
        return {}
    result = await session.execute(
        select(Contact)
        .options(selectinload(Contact.emails), selectinload(Contact.primary_organization))
        .where(Contact.tenant_id == tenant_id)
        .where(Contact.id.in_(ids))
    )
    return {
        contact.id: ContactSnapshot.model_validate(contact)
        for contact in result.scalars().all()
    }


async def _reassign_link(session: AsyncSession, link, parent_column, from_id: UUID, to_id: UUID) -> int:
    """Move join rows from from_id to to_id, dropping rows the primary already has.

    The join tables key on (parent, contact_id), so a parent linked to both
    contacts would otherwise violate the primary key after the update.
    """
    already_linked = select(parent_column).where(link.contact_id == to_id)
    await session.execute(
        sa_delete(link)
        .where(link.contact_id == from_id)
        .where(parent_column.in_(already_linked))
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(
        update(link)
        .where(link.contact_id == from_id)
        .values(contact_id=to_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def _move_emails(session: AsyncSession, from_id: UUID, to_id: UUID) -> int:
    """Move the duplicate's addresses the primary lacks; the rest go with the delete."""
    result = await session.execute(
        select(ContactEmail.email).where(ContactEmail.contact_id == to_id)
    )
    known = {_normalize_email(row[0]) for row in result.all()}

    result = await session.execute(
        select(ContactEmail).where(ContactEmail.contact_id == from_id)
    )
    moved = 0
    for email in result.scalars().all():
        normalized = _normalize_email(email.email)
        if not normalized or normalized in known:
            continue
        known.add(normalized)
        email.contact_id = to_id
        email.is_primary = False
        moved += 1
    return moved


async def reassign_references(
    session: AsyncSession, tenant_id: UUID, from_id: UUID, to_id: UUID
) -> dict[str, int]:
    """Point deal links, activity links, notes and spare emails at to_id.

    Returns the number of rows rewritten per table. Must run inside the
    caller's transaction; nothing here commits.
    """
    counts = {
        "deal_contacts": await _reassign_link(
            session, DealContact, DealContact.deal_id, from_id, to_id
        ),
        "activity_contacts": await _reassign_link(
            session, ActivityContact, ActivityContact.activity_id, from_id, to_id
        ),
    }

    result = await session.execute(
        update(Note)
        .where(Note.tenant_id == tenant_id)
        .where(Note.entity_type == EntityType.CONTACT.value)
        .where(Note.entity_id == from_id)
        .values(entity_id=to_id)
    )
    counts["notes"] = result.rowcount
    counts["emails"] = await _move_emails(session, from_id, to_id)

    await session.flush()
    logger.debug("Reparented contact %s -> %s: %s", from_id, to_id, counts)
    return counts


async def delete(session: AsyncSession, tenant_id: UUID, contact_id: UUID) -> bool:
    """Delete one contact (its remaining emails cascade). False if it did not exist."""
    result = await session.execute(
        sa_delete(Contact)
        .where(Contact.tenant_id == tenant_id)
        .where(Contact.id == contact_id)
        .execution_options(synchronize_session=False)
    )
    await session.flush()
    return result.rowcount > 0


async def get_existing_ids(
    session: AsyncSession, tenant_id: UUID, ids: Iterable[UUID]
) -> set[UUID]:
    """Return the subset of ids that are contacts in this tenant."""
    result = await session.execute(
        select(Contact.id)
        .where(Contact.tenant_id == tenant_id)
        .where(Contact.id.in_(list(ids)))
    )
    return {row[0] for row in result.all()}
