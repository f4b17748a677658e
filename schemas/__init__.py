from .dedup import (
    AuditEntry,
    Candidate,
    ContactCandidate,
    ContactEmailSnapshot,
    ContactSnapshot,
    DetectionResult,
    NewSuggestion,
    OrganizationCandidate,
    OrganizationRef,
    OrganizationSnapshot,
    Snapshot,
    SuggestionView,
)

__all__ = [
    "OrganizationCandidate", "ContactCandidate", "Candidate", "NewSuggestion",
    "OrganizationSnapshot", "ContactSnapshot", "ContactEmailSnapshot",
    "OrganizationRef", "Snapshot", "SuggestionView",
    "DetectionResult", "AuditEntry",
]
