"""Database package for the CRM deduplication service.

The engine lives in db.connection and is created on import, so callers that
only need models or repositories should import those modules directly.
"""
