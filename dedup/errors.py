"""Deduplication error taxonomy.

NotFound and InvalidArgument errors are raised before anything is written.
MergeTransactionError means the merge savepoint was rolled back.
"""
from typing import Optional
from uuid import UUID


class DeduplicationError(Exception):
    """Base class for every error the deduplication engine raises."""


class SuggestionNotFoundError(DeduplicationError, LookupError):
    def __init__(self, suggestion_id: UUID):
        super().__init__(f"Duplicate suggestion not found: {suggestion_id}")
        self.suggestion_id = suggestion_id


class EntityNotFoundError(DeduplicationError, LookupError):
    def __init__(self, entity_type: str, entity_id: UUID):
        super().__init__(f"{entity_type} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidPrimaryError(DeduplicationError, ValueError):
    def __init__(self, primary_id: UUID, suggestion_id: UUID):
        super().__init__(
            f"Invalid primary entity ID {primary_id}: not part of suggestion {suggestion_id}"
        )
        self.primary_id = primary_id
        self.suggestion_id = suggestion_id


class SuggestionAlreadyReviewedError(DeduplicationError):
    """status is None when another reviewer closed the row mid-operation."""

    def __init__(self, suggestion_id: UUID, status: Optional[str] = None):
        if status is None:
            message = f"Duplicate suggestion {suggestion_id} was closed concurrently"
        else:
            message = f"Duplicate suggestion {suggestion_id} is already {status}"
        super().__init__(message)
        self.suggestion_id = suggestion_id
        self.status = status


class MergeTransactionError(DeduplicationError):
    """The multi-table merge failed and was rolled back as a whole."""

    def __init__(self, suggestion_id: UUID, reason: str):
        super().__init__(f"Merge of suggestion {suggestion_id} failed: {reason}")
        self.suggestion_id = suggestion_id
