"""Unit tests for the similarity scorer."""
import itertools
import uuid

import pytest

from db.models import EntityType
from dedup.scoring import (
    SIMILARITY_THRESHOLD,
    extract_domain,
    name_similarity,
    normalize_business_name,
    pair_key,
    score,
)
from schemas.dedup import ContactCandidate, OrganizationCandidate


def _org(name, website=None):
    return OrganizationCandidate(id=uuid.uuid4(), name=name, website=website)


def _contact(first, last, org_id, emails=()):
    return ContactCandidate(
        id=uuid.uuid4(),
        first_name=first,
        last_name=last,
        primary_organization_id=org_id,
        emails=frozenset(emails),
    )


SAMPLE_NAMES = [
    "Sveriges Television",
    "Sveriges Television AB",
    "Eyevinn Technology",
    "Acme Corp.",
    "ACME Corporation",
    "Acme Holdings, Inc.",
    "Group",
    "",
]


class TestNameSimilarity:
    def test_identical_strings_score_one(self):
        for name in SAMPLE_NAMES:
            if name:
                assert name_similarity(name, name) == 1.0

    def test_both_empty_score_one(self):
        assert name_similarity("", "") == 1.0

    def test_one_empty_scores_zero(self):
        assert name_similarity("Acme", "") == 0.0

    def test_case_insensitive(self):
        assert name_similarity("EYEVINN", "eyevinn") == 1.0

    def test_edit_distance_ratio(self):
        # kitten -> sitting: distance 3 over max length 7
        assert name_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_symmetric_and_bounded(self):
        for a, b in itertools.product(SAMPLE_NAMES, repeat=2):
            forward = name_similarity(a, b)
            assert forward == name_similarity(b, a)
            assert 0.0 <= forward <= 1.0


class TestExtractDomain:
    @pytest.mark.parametrize("url", [
        "https://svt.se",
        "http://www.svt.se",
        "www.svt.se",
        "svt.se",
        "HTTPS://WWW.SVT.SE/nyheter?id=1",
    ])
    def test_variants_collapse_to_registrable_host(self, url):
        assert extract_domain(url) == "svt.se"

    def test_keeps_non_www_subdomains(self):
        assert extract_domain("https://play.svt.se") == "play.svt.se"

    def test_empty(self):
        assert extract_domain("") == ""
        assert extract_domain("   ") == ""


class TestNormalizeBusinessName:
    @pytest.mark.parametrize("name,expected", [
        ("Sveriges Television AB", "Sveriges Television"),
        ("Acme Corp.", "Acme"),
        ("Acme, Inc.", "Acme"),
        ("Acme Holdings, Inc.", "Acme"),
        ("Siemens GmbH", "Siemens"),
        ("Tesco PLC", "Tesco"),
        ("Eyevinn Technology", "Eyevinn Technology"),
    ])
    def test_strips_trailing_suffixes(self, name, expected):
        assert normalize_business_name(name) == expected

    def test_suffix_only_name_is_kept(self):
        assert normalize_business_name("Group") == "Group"
        assert normalize_business_name("Holdings") == "Holdings"

    def test_suffix_must_be_a_whole_word(self):
        assert normalize_business_name("Disco") == "Disco"
        assert normalize_business_name("Bloomberg") == "Bloomberg"


class TestOrganizationScore:
    def test_suffix_variant_scores_as_exact_match(self):
        a = _org("Sveriges Television")
        b = _org("Sveriges Television AB")
        similarity = score(EntityType.ORGANIZATION, a, b)
        assert similarity >= SIMILARITY_THRESHOLD
        assert similarity == 1.0

    def test_same_domain_overrides_dissimilar_names(self):
        a = _org("SVT", website="https://svt.se")
        b = _org("Sveriges Television", website="http://www.svt.se")
        assert score(EntityType.ORGANIZATION, a, b) == 1.0

    def test_different_domains_fall_back_to_name(self):
        a = _org("Acme", website="https://acme.com")
        b = _org("Globex", website="https://globex.com")
        assert score(EntityType.ORGANIZATION, a, b) < SIMILARITY_THRESHOLD

    def test_single_website_falls_back_to_name(self):
        a = _org("Acme Corp", website="https://acme.com")
        b = _org("Acme Corporation")
        assert score(EntityType.ORGANIZATION, a, b) == 1.0

    def test_suffix_only_names_do_not_collapse(self):
        a = _org("Group")
        b = _org("Holdings")
        assert score(EntityType.ORGANIZATION, a, b) < SIMILARITY_THRESHOLD

    def test_symmetric_bounded_and_reflexive(self):
        orgs = [_org(name, website) for name, website in [
            ("Sveriges Television", "svt.se"),
            ("Sveriges Television AB", None),
            ("Eyevinn Technology AB", "https://www.eyevinn.se"),
            ("Eyevinn", "eyevinn.se"),
            ("Acme Corp.", None),
        ]]
        for a, b in itertools.product(orgs, repeat=2):
            forward = score(EntityType.ORGANIZATION, a, b)
            assert forward == score(EntityType.ORGANIZATION, b, a)
            assert 0.0 <= forward <= 1.0
        for org in orgs:
            assert score(EntityType.ORGANIZATION, org, org) == 1.0


class TestContactScore:
    def test_shared_email_scores_one(self):
        org_id = uuid.uuid4()
        a = _contact("Jonas", "Birme", org_id, ["jonas@eyevinn.se"])
        b = _contact("J", "Birme", org_id, ["JONAS@eyevinn.se", "jb@example.com"])
        assert score(EntityType.CONTACT, a, b) == 1.0

    def test_blank_addresses_are_not_a_shared_email(self):
        org_id = uuid.uuid4()
        a = _contact("A", "B", org_id, [""])
        b = _contact("Zed", "Q", org_id, [" "])
        assert score(EntityType.CONTACT, a, b) < SIMILARITY_THRESHOLD

    def test_without_shared_email_uses_full_name(self):
        org_id = uuid.uuid4()
        a = _contact("Jonas", "Birme", org_id)
        b = _contact("J", "Birme", org_id)
        # "jonas birme" vs "j birme": distance 4 over length 11
        assert score(EntityType.CONTACT, a, b) == pytest.approx(7 / 11)

    def test_no_suffix_normalization_for_contacts(self):
        org_id = uuid.uuid4()
        a = _contact("Anna", "Group", org_id)
        b = _contact("Anna", "", org_id)
        assert score(EntityType.CONTACT, a, b) < 1.0

    def test_cross_organization_never_matches(self):
        a = _contact("Jonas", "Birme", uuid.uuid4(), ["jonas@eyevinn.se"])
        b = _contact("Jonas", "Birme", uuid.uuid4(), ["jonas@eyevinn.se"])
        assert score(EntityType.CONTACT, a, b) == 0.0

    def test_symmetric(self):
        org_id = uuid.uuid4()
        a = _contact("Magnus", "Svensson", org_id, ["magnus@example.com"])
        b = _contact("Magnus", "Svenson", org_id)
        assert score(EntityType.CONTACT, a, b) == score(EntityType.CONTACT, b, a)


def test_unknown_entity_type_rejected():
    with pytest.raises(ValueError):
        score("DEAL", _org("a"), _org("b"))


def test_pair_key_is_order_independent():
    a, b = uuid.uuid4(), uuid.uuid4()
    assert pair_key(a, b) == pair_key(b, a)
    assert pair_key(a, b)[0] < pair_key(a, b)[1]
