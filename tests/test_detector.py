"""Unit tests for candidate generation — repositories are patched."""
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from db.models import EntityType, SuggestionStatus
from dedup.detector import detect_duplicates, find_candidate_pairs
from dedup.scoring import pair_key
from schemas.dedup import ContactCandidate, OrganizationCandidate


ORGS_MODULE = "db.repositories.organizations"
CONTACTS_MODULE = "db.repositories.contacts"
SUGGESTIONS_MODULE = "db.repositories.suggestions"


class InMemorySuggestionStore:
    """Stands in for the suggestions repository across repeated detection runs."""

    def __init__(self):
        self.rows = []

    async def get_known_pairs(self, session, tenant_id, entity_type, statuses=(SuggestionStatus.PENDING,)):
        wanted = {s.value for s in statuses}
        return {
            (r["entity_id1"], r["entity_id2"])
            for r in self.rows
            if r["tenant_id"] == tenant_id
            and r["entity_type"] == entity_type.value
            and r["status"] in wanted
        }

    async def insert_many(self, session, tenant_id, entity_type, suggestions):
        for s in suggestions:
            self.rows.append({
                "tenant_id": tenant_id,
                "entity_type": entity_type.value,
                "entity_id1": s.entity_id1,
                "entity_id2": s.entity_id2,
                "similarity_score": s.similarity_score,
                "status": SuggestionStatus.PENDING.value,
            })
        return len(suggestions)


def _org(name, website=None):
    return OrganizationCandidate(id=uuid.uuid4(), name=name, website=website)


def _contact(first, last, org_id, emails=()):
    return ContactCandidate(
        id=uuid.uuid4(), first_name=first, last_name=last,
        primary_organization_id=org_id, emails=frozenset(emails),
    )


class TestFindCandidatePairs:
    def test_stages_pairs_at_or_above_threshold(self):
        a = _org("Sveriges Television")
        b = _org("Sveriges Television AB")
        c = _org("Eyevinn Technology")
        staged = find_candidate_pairs(EntityType.ORGANIZATION, [a, b, c], set())

        assert len(staged) == 1
        assert (staged[0].entity_id1, staged[0].entity_id2) == pair_key(a.id, b.id)
        assert staged[0].similarity_score == 1.0

    def test_known_pairs_are_skipped_in_either_order(self):
        a = _org("Acme Corp")
        b = _org("Acme Corporation")
        known = {pair_key(b.id, a.id)}
        assert find_candidate_pairs(EntityType.ORGANIZATION, [a, b], known) == []

    def test_staged_pairs_are_added_to_known(self):
        a = _org("Acme Corp")
        b = _org("Acme Corporation")
        known = set()
        find_candidate_pairs(EntityType.ORGANIZATION, [a, b], known)
        assert pair_key(a.id, b.id) in known

    def test_repeated_entity_is_not_paired_twice(self):
        a = _org("Acme Corp")
        b = _org("Acme Corporation")
        staged = find_candidate_pairs(EntityType.ORGANIZATION, [a, b, b], set())
        assert len(staged) == 1

    def test_threshold_is_inclusive(self):
        # three substitutions over 20 characters: (20 - 3) / 20 == 0.85
        a = _org("abcdefghijklmnopqrst")
        b = _org("abcdefghijklmnopqxyz")
        staged = find_candidate_pairs(EntityType.ORGANIZATION, [a, b], set())
        assert len(staged) == 1
        assert staged[0].similarity_score == pytest.approx(0.85)

    def test_contacts_across_organizations_are_never_staged(self):
        a = _contact("Jonas", "Birme", uuid.uuid4(), ["jonas@eyevinn.se"])
        b = _contact("Jonas", "Birme", uuid.uuid4(), ["jonas@eyevinn.se"])
        assert find_candidate_pairs(EntityType.CONTACT, [a, b], set()) == []


@pytest.mark.asyncio
async def test_detect_returns_created_count(session, tenant_id):
    orgs = [_org("Sveriges Television"), _org("Sveriges Television AB"), _org("Eyevinn")]
    store = InMemorySuggestionStore()

    with patch(f"{ORGS_MODULE}.list_candidates", AsyncMock(return_value=orgs)) as list_mock, \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", side_effect=store.get_known_pairs), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", side_effect=store.insert_many) as insert_mock:
        result = await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)

    assert result.detected == 1
    list_mock.assert_awaited_once_with(session, tenant_id)
    insert_mock.assert_awaited_once()
    assert store.rows[0]["similarity_score"] == 1.0


@pytest.mark.asyncio
async def test_detect_twice_is_idempotent(session, tenant_id):
    orgs = [
        _org("SVT", website="https://svt.se"),
        _org("Sveriges Television", website="http://www.svt.se"),
        _org("Acme Corp"),
        _org("Acme Corporation"),
    ]
    store = InMemorySuggestionStore()

    with patch(f"{ORGS_MODULE}.list_candidates", AsyncMock(return_value=orgs)), \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", side_effect=store.get_known_pairs), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", side_effect=store.insert_many):
        first = await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)
        second = await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)

    assert first.detected == 2
    assert second.detected == 0
    assert len(store.rows) == 2


@pytest.mark.asyncio
async def test_dismissed_pairs_are_not_resurfaced(session, tenant_id):
    orgs = [_org("Acme Corp"), _org("Acme Corporation")]
    store = InMemorySuggestionStore()

    with patch(f"{ORGS_MODULE}.list_candidates", AsyncMock(return_value=orgs)), \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", side_effect=store.get_known_pairs), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", side_effect=store.insert_many):
        await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)
        store.rows[0]["status"] = SuggestionStatus.DISMISSED.value
        again = await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)

    assert again.detected == 0


@pytest.mark.asyncio
async def test_detect_contacts_uses_contact_repository(session, tenant_id):
    org_id = uuid.uuid4()
    contacts = [
        _contact("Jonas", "Birme", org_id, ["jonas@eyevinn.se"]),
        _contact("J", "Birme", org_id, ["jonas@eyevinn.se"]),
        _contact("Jonas", "Birme", uuid.uuid4()),
    ]
    store = InMemorySuggestionStore()

    with patch(f"{CONTACTS_MODULE}.list_candidates", AsyncMock(return_value=contacts)), \
         patch(f"{ORGS_MODULE}.list_candidates", AsyncMock()) as org_list, \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", side_effect=store.get_known_pairs), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", side_effect=store.insert_many):
        result = await detect_duplicates(session, tenant_id, EntityType.CONTACT)

    assert result.detected == 1
    org_list.assert_not_awaited()
    assert store.rows[0]["entity_type"] == "CONTACT"


@pytest.mark.asyncio
async def test_detect_with_nothing_found_returns_zero(session, tenant_id):
    with patch(f"{ORGS_MODULE}.list_candidates", AsyncMock(return_value=[])), \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", AsyncMock(return_value=set())), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", AsyncMock(return_value=0)) as insert_mock:
        result = await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)

    assert result.detected == 0
    insert_mock.assert_awaited_once_with(session, tenant_id, EntityType.ORGANIZATION, [])


@pytest.mark.asyncio
async def test_detect_fetches_known_pairs_once(session, tenant_id):
    orgs = [_org(f"Company {i}") for i in range(6)]
    known_mock = AsyncMock(return_value=set())

    with patch(f"{ORGS_MODULE}.list_candidates", AsyncMock(return_value=orgs)), \
         patch(f"{SUGGESTIONS_MODULE}.get_known_pairs", known_mock), \
         patch(f"{SUGGESTIONS_MODULE}.insert_many", AsyncMock(return_value=0)):
        await detect_duplicates(session, tenant_id, EntityType.ORGANIZATION)

    known_mock.assert_awaited_once()
    statuses = known_mock.await_args.kwargs["statuses"]
    assert set(statuses) == {SuggestionStatus.PENDING, SuggestionStatus.DISMISSED}
