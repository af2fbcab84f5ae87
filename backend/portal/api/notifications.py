"""
Notification feeds and the stale-application sweep.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.api.auth import get_current_identity, require_staff
from portal.models import DiscordIdentity, Notification
from portal.schemas.notification import StaleApplicationsResponse
from portal.services import notifications
from portal.services.notifications import NotificationNotFoundError
from portal.storage import CollectionStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[Notification])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    return await notifications.list_notifications(store, unread_only=unread_only)


@router.get("/count")
async def read_unread_count(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    return {"unread": await notifications.unread_count(store)}


@router.post("/mark-all-read")
async def mark_all_notifications_read(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    changed = await notifications.mark_all_read(store)
    logger.info(f"{staff.username} marked {changed} notifications read")
    return {"success": True, "count": changed}


@router.get("/user", response_model=List[Notification])
async def list_my_notifications(
    identity: DiscordIdentity = Depends(get_current_identity),
    store: CollectionStore = Depends(get_store),
):
    """Notifications addressed to the logged-in applicant, newest first."""
    return await notifications.list_user_notifications(store, identity.id)


@router.get("/stale", response_model=StaleApplicationsResponse)
async def list_stale_applications(
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    """Pending applications that have waited longer than the stale threshold."""
    return await notifications.find_stale_applications(store)

@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    staff: DiscordIdentity = Depends(require_staff),
    store: CollectionStore = Depends(get_store),
):
    try:
        return await notifications.mark_notification_read(store, notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
