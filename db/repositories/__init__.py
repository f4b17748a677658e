"""Repository layer for the CRM deduplication service.

Every function takes the session and the tenant id explicitly:
- organizations: list_candidates, get_snapshots, get_existing_ids,
                 reassign_references, delete
- contacts: list_candidates, get_snapshots, get_existing_ids,
            reassign_references, delete
- suggestions: get_known_pairs, insert_many, list_pending, get_for_tenant,
               mark_reviewed
- audit: record
"""
