"""
Application type registry.

Plain CRUD keyed by id. Deleting a type does not touch applications that
reference it; those fall back to the unknown-type config.
"""
import logging
from typing import List, Optional

from portal.models import ApplicationType
from portal.models.application_type import fallback_type
from portal.schemas.application_type import ApplicationTypeCreate, ApplicationTypePatch
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)


class ApplicationTypeNotFoundError(Exception):
    """Raised when a type id is not registered"""
    pass


class ApplicationTypeExistsError(Exception):
    """Raised when creating a type whose id is already registered"""
    pass


async def list_types(store: CollectionStore) -> List[ApplicationType]:
    return await store.application_types.read()


async def get_type(store: CollectionStore, type_id: str) -> Optional[ApplicationType]:
    for application_type in await store.application_types.read():
        if application_type.id == type_id:
            return application_type
    return None


async def resolve_type_config(store: CollectionStore, type_id: str) -> ApplicationType:
    """The registered type, or the permissive fallback for unknown ids."""
    return await get_type(store, type_id) or fallback_type(type_id)


async def create_type(store: CollectionStore, request: ApplicationTypeCreate) -> ApplicationType:
    async with store.application_types.transaction() as types:
        if any(t.id == request.id for t in types):
            raise ApplicationTypeExistsError(f"Application type {request.id} already exists")
        application_type = ApplicationType(**request.model_dump())
        types.append(application_type)

    logger.info(f"Created application type {application_type.id}")
    return application_type


async def update_type(store: CollectionStore, patch: ApplicationTypePatch) -> ApplicationType:
    """
    Overwrite only the fields present in `patch`.

    The merged record is validated before the collection is written, so a
    rejected patch leaves the file untouched.
    """
    changes = patch.changes()
    async with store.application_types.transaction() as types:
        for index, current in enumerate(types):
            if current.id == patch.id:
                types[index] = ApplicationType.model_validate({**current.model_dump(), **changes})
                break
        else:
            raise ApplicationTypeNotFoundError(f"Application type {patch.id} not found")

    logger.info(f"Updated application type {patch.id}", extra={"changes": sorted(changes)})
    return types[index]


async def delete_type(store: CollectionStore, type_id: str) -> ApplicationType:
    async with store.application_types.transaction() as types:
        for index, current in enumerate(types):
            if current.id == type_id:
                deleted = types.pop(index)
                break
        else:
            raise ApplicationTypeNotFoundError(f"Application type {type_id} not found")

    logger.info(f"Deleted application type {type_id}")
    return deleted
