"""Shared fixtures for the deduplication unit tests.

Unit tests patch the repository functions, so the session only has to
support begin_nested() and add().
"""
import uuid
from unittest.mock import MagicMock

import pytest

from db.models import DuplicateSuggestion, EntityType, SuggestionStatus
from dedup.scoring import pair_key


class FakeSavepoint:
    def __init__(self, session: "FakeSession"):
        self.session = session

    async def __aenter__(self):
        self.session.savepoints.append("open")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.session.savepoints.append("rollback" if exc_type else "release")
        return False


class FakeSession:
    def __init__(self):
        self.savepoints: list[str] = []
        self.add = MagicMock()

    def begin_nested(self) -> FakeSavepoint:
        return FakeSavepoint(self)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def tenant_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


def make_suggestion(
    tenant_id: uuid.UUID,
    entity_type: EntityType = EntityType.ORGANIZATION,
    status: SuggestionStatus = SuggestionStatus.PENDING,
    score: float = 0.9,
) -> DuplicateSuggestion:
    id1, id2 = pair_key(uuid.uuid4(), uuid.uuid4())
    return DuplicateSuggestion(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        entity_type=entity_type.value,
        entity_id1=id1,
        entity_id2=id2,
        similarity_score=score,
        status=status.value,
    )


@pytest.fixture
def suggestion_factory(tenant_id):
    def _factory(**kwargs) -> DuplicateSuggestion:
        return make_suggestion(tenant_id, **kwargs)
    return _factory
