"""Unit tests for the suggestions repository's batched insert."""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from db.models import EntityType
from db.repositories import suggestions as suggestions_repo
from dedup.scoring import pair_key
from schemas.dedup import NewSuggestion

# asyncpg rejects statements binding more parameters than this
ASYNCPG_MAX_PARAMS = 32767


def _staged(count):
    staged = []
    for _ in range(count):
        id1, id2 = pair_key(uuid.uuid4(), uuid.uuid4())
        staged.append(NewSuggestion(entity_id1=id1, entity_id2=id2, similarity_score=0.9))
    return staged


class RecordingSession:
    """Compiles every executed statement and reports all its rows as inserted."""

    def __init__(self):
        self.compiled = []
        self.flush = AsyncMock()
        self.execute = AsyncMock(side_effect=self._execute)

    async def _execute(self, stmt):
        compiled = stmt.compile(dialect=postgresql.dialect())
        self.compiled.append(compiled)
        rows = sum(1 for name in compiled.params if name.startswith("entity_id1"))
        result = MagicMock()
        result.fetchall.return_value = [uuid.uuid4() for _ in range(rows)]
        return result


@pytest.mark.asyncio
async def test_large_detection_run_is_split_into_batches():
    session = RecordingSession()
    staged = _staged(5001)

    inserted = await suggestions_repo.insert_many(
        session, uuid.uuid4(), EntityType.CONTACT, staged
    )

    assert inserted == 5001
    assert len(session.compiled) == 6
    for compiled in session.compiled:
        assert len(compiled.params) <= ASYNCPG_MAX_PARAMS
        assert "ON CONFLICT" in str(compiled)
    session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_inserted_count_sums_returning_rows_across_batches():
    session = RecordingSession()
    conflicting = MagicMock()
    conflicting.fetchall.return_value = []
    original = session._execute

    async def first_batch_conflicts(stmt):
        if not session.compiled:
            session.compiled.append(stmt)
            return conflicting
        return await original(stmt)

    session.execute.side_effect = first_batch_conflicts
    staged = _staged(suggestions_repo.INSERT_BATCH_SIZE + 10)

    inserted = await suggestions_repo.insert_many(
        session, uuid.uuid4(), EntityType.ORGANIZATION, staged
    )

    assert inserted == 10


@pytest.mark.asyncio
async def test_nothing_staged_skips_the_database():
    session = RecordingSession()
    assert await suggestions_repo.insert_many(session, uuid.uuid4(), EntityType.CONTACT, []) == 0
    session.execute.assert_not_awaited()
