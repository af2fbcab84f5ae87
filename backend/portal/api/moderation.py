"""
Ban and blacklist management endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from portal.api.auth import require_permission
from portal.models import ActivityType, DiscordIdentity
from portal.schemas.moderation import (
    ModerationLists,
    ModerationRemoval,
    ModerationRequest,
    ModerationResponse,
)
from portal.services import moderation
from portal.services.activity_log import log_activity
from portal.services.moderation import ModerationEntryExistsError, ModerationEntryNotFoundError
from portal.storage import CollectionStore, get_store

logger = logging.getLogger(__name__)
router = APIRouter()

require_ban_manager = require_permission("manage_bans")


@router.get("", response_model=ModerationLists)
async def list_moderation(
    moderator: DiscordIdentity = Depends(require_ban_manager),
    store: CollectionStore = Depends(get_store),
):
    return ModerationLists(
        bans=await moderation.list_bans(store),
        blacklist=await moderation.list_blacklist(store),
    )


@router.post("", response_model=ModerationResponse, status_code=201)
async def add_moderation_entry(
    request: ModerationRequest,
    moderator: DiscordIdentity = Depends(require_ban_manager),
    store: CollectionStore = Depends(get_store),
):
    """
    Ban or blacklist a user.

    Returns:
        201: Entry added
        409: User is already on that list
    """
    try:
        if request.action == "ban":
            entry = await moderation.add_ban(
                store, request.discord_id, request.reason, request.admin, expires=request.expires
            )
            event, message = ActivityType.USER_BANNED, "User banned successfully"
        else:
            entry = await moderation.add_blacklist(store, request.discord_id, request.reason, request.admin)
            event, message = ActivityType.USER_BLACKLISTED, "User blacklisted successfully"
    except ModerationEntryExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))

    await log_activity(
        store, event, moderator.id, moderator.username,
        target_id=request.discord_id,
        details={"reason": request.reason, "expires": request.expires} if request.action == "ban"
        else {"reason": request.reason},
    )
    return ModerationResponse(message=message, entry=entry.to_document())


@router.delete("", response_model=ModerationResponse)
async def remove_moderation_entry(
    request: ModerationRemoval,
    moderator: DiscordIdentity = Depends(require_ban_manager),
    store: CollectionStore = Depends(get_store),
):
    """
    Lift a ban or blacklist entry.

    Returns:
        200: Entry removed
        404: User is not on that list
    """
    try:
        if request.action == "unban":
            await moderation.remove_ban(store, request.discord_id)
            event, message = ActivityType.USER_UNBANNED, "User unbanned successfully"
        else:
            await moderation.remove_blacklist(store, request.discord_id)
            event, message = ActivityType.USER_UNBLACKLISTED, "User removed from blacklist"
    except ModerationEntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await log_activity(store, event, moderator.id, moderator.username, target_id=request.discord_id)
    return ModerationResponse(message=message)
