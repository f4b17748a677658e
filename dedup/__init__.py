"""Entity-resolution engine for organizations and contacts.

- detector: detect_duplicates, detect_organization_duplicates,
            detect_contact_duplicates
- suggestions: list_suggestions
- merge: merge_suggestion, dismiss_suggestion
- scoring: score and its building blocks
"""
from .detector import detect_contact_duplicates, detect_duplicates, detect_organization_duplicates
from .errors import (
    DeduplicationError,
    EntityNotFoundError,
    InvalidPrimaryError,
    MergeTransactionError,
    SuggestionAlreadyReviewedError,
    SuggestionNotFoundError,
)
from .merge import dismiss_suggestion, merge_suggestion
from .scoring import SIMILARITY_THRESHOLD, score
from .suggestions import list_suggestions

__all__ = [
    "detect_duplicates", "detect_organization_duplicates", "detect_contact_duplicates",
    "list_suggestions", "merge_suggestion", "dismiss_suggestion",
    "score", "SIMILARITY_THRESHOLD",
    "DeduplicationError", "SuggestionNotFoundError", "EntityNotFoundError",
    "InvalidPrimaryError", "SuggestionAlreadyReviewedError", "MergeTransactionError",
]
