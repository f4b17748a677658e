"""SQLAlchemy 2.0 ORM models for the CRM deduplication service.

Covers 11 tables across 2 schemas:
  - crm: organizations, contacts, contact_emails, deals, deal_contacts,
         activities, activity_contacts, notes, duplicate_suggestions
  - obs: audit_logs

The CRUD layer owns every crm table except duplicate_suggestions; the
deduplication engine only rewrites foreign keys on those rows during a merge.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    UUID,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    JSON,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Closed vocabularies used in CHECK constraints
# ---------------------------------------------------------------------------


class EntityType(str, enum.Enum):
    ORGANIZATION = "ORGANIZATION"
    CONTACT = "CONTACT"


class SuggestionStatus(str, enum.Enum):
    PENDING = "PENDING"
    MERGED = "MERGED"
    DISMISSED = "DISMISSED"


def _in_check(column: str, values) -> str:
    return f"{column} IN (" + ", ".join(f"'{v.value}'" for v in values) + ")"


_ENTITY_TYPE_CHECK = _in_check("entity_type", EntityType)
_SUGGESTION_STATUS_CHECK = _in_check("status", SuggestionStatus)


# ===========================================================================
# Schema: crm
# ===========================================================================


class Organization(Base):
    """crm.organizations — tenant-scoped company record."""

    __tablename__ = "organizations"
    __table_args__ = (
        Index("ix_org_tenant", "tenant_id"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    website: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    street: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    zip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    country: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    contacts: Mapped[list["Contact"]] = relationship(
        "Contact", back_populates="primary_organization"
    )
    deals: Mapped[list["Deal"]] = relationship("Deal", back_populates="organization")
    activities: Mapped[list["Activity"]] = relationship(
        "Activity", back_populates="related_organization"
    )


class Contact(Base):
    """crm.contacts — a person anchored to exactly one organization."""

    __tablename__ = "contacts"
    __table_args__ = (
        Index("ix_contact_tenant", "tenant_id"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    job_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    primary_organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.organizations.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    primary_organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="contacts"
    )
    emails: Mapped[list["ContactEmail"]] = relationship(
        "ContactEmail",
        back_populates="contact",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ContactEmail(Base):
    """crm.contact_emails — one row per address a contact is known by."""

    __tablename__ = "contact_emails"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, server_default="false", nullable=False)

    contact: Mapped["Contact"] = relationship("Contact", back_populates="emails")


class Deal(Base):
    """crm.deals — sales opportunity owned by an organization."""

    __tablename__ = "deals"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.organizations.id"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    stage: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    organization: Mapped["Organization"] = relationship(
        "Organization", back_populates="deals"
    )


class DealContact(Base):
    """crm.deal_contacts — many-to-many link between deals and contacts."""

    __tablename__ = "deal_contacts"
    __table_args__ = {"schema": "crm"}

    deal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.deals.id", ondelete="CASCADE"),
        primary_key=True,
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.contacts.id"),
        primary_key=True,
    )


class Activity(Base):
    """crm.activities — calls, meetings and tasks logged against an org."""

    __tablename__ = "activities"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    related_organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.organizations.id"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    related_organization: Mapped[Optional["Organization"]] = relationship(
        "Organization", back_populates="activities"
    )


class ActivityContact(Base):
    """crm.activity_contacts — participants of an activity."""

    __tablename__ = "activity_contacts"
    __table_args__ = {"schema": "crm"}

    activity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.activities.id", ondelete="CASCADE"),
        primary_key=True,
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.contacts.id"),
        primary_key=True,
    )


class Note(Base):
    """crm.notes — free text attached to any entity (polymorphic, no FK)."""

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(_ENTITY_TYPE_CHECK, name="ck_note_entity_type"),
        Index("ix_note_entity", "entity_type", "entity_id"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    entity_type: Mapped[str] = mapped_column(Text, nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class DuplicateSuggestion(Base):
    """crm.duplicate_suggestions — candidate duplicate pair awaiting review.

    entity_id1 < entity_id2 always holds, so an unordered pair has exactly one
    row shape. The partial unique index keeps at most one PENDING row per pair.
    """

    __tablename__ = "duplicate_suggestions"
    __table_args__ = (
        CheckConstraint(_ENTITY_TYPE_CHECK, name="ck_suggestion_entity_type"),
        CheckConstraint(_SUGGESTION_STATUS_CHECK, name="ck_suggestion_status"),
        CheckConstraint("entity_id1 < entity_id2", name="ck_suggestion_pair_order"),
        CheckConstraint(
            "similarity_score >= 0 AND similarity_score <= 1",
            name="ck_suggestion_score_range",
        ),
        Index(
            "uq_suggestion_pending_pair",
            "tenant_id",
            "entity_type",
            "entity_id1",
            "entity_id2",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
        ),
        Index("ix_suggestion_tenant_type_status", "tenant_id", "entity_type", "status"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    entity_type: Mapped[str] = mapped_column(Text, nullable=False)
    # Loose UUID references; the entity may be deleted independently
    entity_id1: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    entity_id2: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    similarity_score: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=SuggestionStatus.PENDING.value
    )
    reviewed_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# ===========================================================================
# Schema: obs
# ===========================================================================


class AuditLog(Base):
    """obs.audit_logs — who changed what, with before/after payloads."""

    __tablename__ = "audit_logs"
    __table_args__ = {"schema": "obs"}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    entity_type: Mapped[str] = mapped_column(Text, nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    before_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    after_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
