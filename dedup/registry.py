"""EntityType -> repository dispatch.

Adding an entity type means adding a member to EntityType and a repository
module exposing list_candidates, get_snapshots, get_existing_ids,
reassign_references and delete; entity_repository fails loudly for a
member without one.
"""
from types import ModuleType

from db.models import EntityType
from db.repositories import contacts as contacts_repo
from db.repositories import organizations as orgs_repo

_REPOSITORIES = {
    EntityType.ORGANIZATION: orgs_repo,
    EntityType.CONTACT: contacts_repo,
}


def entity_repository(entity_type: EntityType) -> ModuleType:
    try:
        return _REPOSITORIES[EntityType(entity_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported entity type: {entity_type!r}")
