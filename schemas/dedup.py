"""Deduplication schemas — scorer inputs, listing payloads and results."""
from datetime import datetime
from typing import Any, FrozenSet, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OrganizationCandidate(BaseModel):
    """Minimal organization projection the scorer needs."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    website: Optional[str] = None


class ContactCandidate(BaseModel):
    """Minimal contact projection the scorer needs."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    first_name: str = ""
    last_name: str = ""
    primary_organization_id: Optional[UUID] = None
    emails: FrozenSet[str] = frozenset()


Candidate = Union[OrganizationCandidate, ContactCandidate]


class NewSuggestion(BaseModel):
    """A suggestion staged by detection; ids are already in canonical order."""

    entity_id1: UUID
    entity_id2: UUID
    similarity_score: float = Field(ge=0.0, le=1.0)


class OrganizationSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    website: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contact_count: int = 0
    deal_count: int = 0
    activity_count: int = 0


class ContactEmailSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    is_primary: bool = False


class OrganizationRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class ContactSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    job_title: Optional[str] = None
    emails: List[ContactEmailSnapshot] = Field(default_factory=list)
    primary_organization: Optional[OrganizationRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


Snapshot = Union[OrganizationSnapshot, ContactSnapshot]


class SuggestionView(BaseModel):
    """A pending suggestion with the current state of both entities.

    A snapshot is None when the entity was deleted after detection.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    entity_type: str
    entity_id1: UUID
    entity_id2: UUID
    similarity_score: float
    status: str
    created_at: Optional[datetime] = None
    entity1: Optional[Snapshot] = None
    entity2: Optional[Snapshot] = None


class DetectionResult(BaseModel):
    detected: int = Field(ge=0)


class AuditEntry(BaseModel):
    tenant_id: UUID
    user_id: Optional[UUID] = None
    entity_type: str
    entity_id: UUID
    action: str
    before_data: Optional[dict[str, Any]] = None
    after_data: Optional[dict[str, Any]] = None
