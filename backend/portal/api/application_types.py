"""
Application type registry endpoints.
Listing is public so the application form can render; changes need the
manage_application_types permission.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.api.auth import require_permission
from portal.models import ActivityType, DiscordIdentity
from portal.schemas.application_type import (
    ApplicationTypeCreate,
    ApplicationTypePatch,
    ApplicationTypeResponse,
)
from portal.services import application_types as registry
from portal.services.activity_log import log_activity
from portal.services.application_types import ApplicationTypeExistsError, ApplicationTypeNotFoundError
from portal.storage import CollectionStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()

require_type_manager = require_permission("manage_application_types")


@router.get("", response_model=List[ApplicationTypeResponse])
async def list_application_types(store: CollectionStore = Depends(get_store)):
    return await registry.list_types(store)


@router.post("", response_model=ApplicationTypeResponse, status_code=201)
async def create_application_type(
    request: ApplicationTypeCreate,
    admin: DiscordIdentity = Depends(require_type_manager),
    store: CollectionStore = Depends(get_store),
):
    """
    Register a new application type.

    Returns:
        201: Type created
        409: A type with this id already exists
    """
    try:
        application_type = await registry.create_type(store, request)
    except ApplicationTypeExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))

    await log_activity(
        store, ActivityType.APPLICATION_TYPE_CREATED, admin.id, admin.username,
        target_id=application_type.id, target_name=application_type.name,
    )
    return application_type


@router.put("", response_model=ApplicationTypeResponse)
async def update_application_type(
    patch: ApplicationTypePatch,
    admin: DiscordIdentity = Depends(require_type_manager),
    store: CollectionStore = Depends(get_store),
):
    """
    Update a type. Only fields present in the body are changed.
    """
    try:
        application_type = await registry.update_type(store, patch)
    except ApplicationTypeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await log_activity(
        store, ActivityType.APPLICATION_TYPE_UPDATED, admin.id, admin.username,
        target_id=application_type.id, target_name=application_type.name,
        details={"changes": sorted(patch.changes())},
    )
    return application_type


@router.delete("")
async def delete_application_type(
    type_id: str = Query(..., alias="id"),
    admin: DiscordIdentity = Depends(require_type_manager),
    store: CollectionStore = Depends(get_store),
):
    """
    Remove a type. Applications that reference it keep their type id and
    fall back to the default rules.
    """
    try:
        deleted = await registry.delete_type(store, type_id)
    except ApplicationTypeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await log_activity(
        store, ActivityType.APPLICATION_TYPE_DELETED, admin.id, admin.username,
        target_id=deleted.id, target_name=deleted.name,
    )
    return {"message": f"Application type {deleted.id} deleted"}
