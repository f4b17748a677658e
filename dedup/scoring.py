"""Similarity scoring for organization and contact duplicate detection.

Scores are in [0, 1]. The name ratio is

    (max(len) - levenshtein(lower(a), lower(b))) / max(len)

which is symmetric and equals 1.0 for identical strings (and for two empty
strings). Organizations additionally compare website domains and
legal-suffix-stripped names; contacts compare shared email addresses and are
only ever scored against contacts of the same primary organization.
"""
import re
from typing import Optional
from urllib.parse import urlsplit
from uuid import UUID

from rapidfuzz.distance import Levenshtein

from db.models import EntityType
from schemas.dedup import Candidate, ContactCandidate, OrganizationCandidate

SIMILARITY_THRESHOLD = 0.85

# Matched as whole words at the end of the name, case-insensitively
BUSINESS_SUFFIXES = (
    "inc", "incorporated", "corp", "corporation", "co", "company",
    "llc", "llp", "lp", "ltd", "limited", "plc",
    "gmbh", "ag", "kg", "ab", "as", "asa", "oy", "oyj", "aps",
    "bv", "nv", "sa", "sas", "sarl", "srl", "spa", "pty",
    "group", "holding", "holdings",
)

_SUFFIX_RE = re.compile(
    r"[\s,]+(?:" + "|".join(BUSINESS_SUFFIXES) + r")\.?$",
    re.IGNORECASE,
)
_TRAILING_PUNCT_RE = re.compile(r"[\s.,;:!&\-]+$")


def extract_domain(url: str) -> str:
    """Return the lowercased hostname of url without a leading 'www.'.

    Bare domains ('svt.se') are accepted. Unparseable input falls back to
    the lowercased, stripped string.
    """
    raw = (url or "").strip()
    if not raw:
        return ""
    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError:
        host = None
    if not host:
        return raw.lower()
    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host


def normalize_business_name(name: str) -> str:
    """Strip trailing legal-entity suffixes ('Acme Holdings AB' -> 'Acme').

    A name that is nothing but a suffix word is returned unchanged, so
    'Group' and 'Holdings' never both normalize to the empty string.
    """
    normalized = _TRAILING_PUNCT_RE.sub("", (name or "").strip())
    while True:
        stripped = _TRAILING_PUNCT_RE.sub("", _SUFFIX_RE.sub("", normalized))
        if stripped == normalized or not stripped:
            break
        normalized = stripped
    return normalized or (name or "").strip()


def name_similarity(a: str, b: str) -> float:
    a = (a or "").lower()
    b = (b or "").lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - Levenshtein.distance(a, b)) / longest


def _same_domain(website_a: Optional[str], website_b: Optional[str]) -> bool:
    if not website_a or not website_b:
        return False
    domain = extract_domain(website_a)
    return bool(domain) and domain == extract_domain(website_b)


def score_organizations(a: OrganizationCandidate, b: OrganizationCandidate) -> float:
    if _same_domain(a.website, b.website):
        return 1.0
    raw = name_similarity(a.name, b.name)
    normalized = name_similarity(
        normalize_business_name(a.name), normalize_business_name(b.name)
    )
    return max(raw, normalized)


def _full_name(contact: ContactCandidate) -> str:
    return f"{contact.first_name} {contact.last_name}".strip()


def score_contacts(a: ContactCandidate, b: ContactCandidate) -> float:
    # Contacts at different organizations are never duplicates of each other
    if a.primary_organization_id != b.primary_organization_id:
        return 0.0
    emails_a = {e.lower().strip() for e in a.emails} - {""}
    emails_b = {e.lower().strip() for e in b.emails} - {""}
    if emails_a & emails_b:
        return 1.0
    return name_similarity(_full_name(a), _full_name(b))


_SCORERS = {
    EntityType.ORGANIZATION: score_organizations,
    EntityType.CONTACT: score_contacts,
}


def score(entity_type: EntityType, a: Candidate, b: Candidate) -> float:
    """Dispatch to the scorer for entity_type. Result is clamped to [0, 1]."""
    try:
        scorer = _SCORERS[EntityType(entity_type)]
    except (KeyError, ValueError):
        raise ValueError(f"No similarity scorer for entity type {entity_type!r}")
    return min(1.0, max(0.0, scorer(a, b)))


def pair_key(id_a: UUID, id_b: UUID) -> tuple[UUID, UUID]:
    """Canonical, order-independent identity of an entity pair."""
    return (id_a, id_b) if id_a < id_b else (id_b, id_a)
