"""
Activity log endpoint.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from portal.api.auth import require_permission
from portal.models import ActivityLogEntry, DiscordIdentity
from portal.services.activity_log import get_activity_logs
from portal.storage import CollectionStore, get_store

router = APIRouter()


@router.get("", response_model=List[ActivityLogEntry])
async def read_activity_log(
    type: Optional[str] = Query(None, description="Only entries of this activity type"),
    target_id: Optional[str] = Query(None, alias="targetId"),
    limit: int = Query(100, ge=1, le=1000),
    moderator: DiscordIdentity = Depends(require_permission("view_activity_log")),
    store: CollectionStore = Depends(get_store),
):
    """Newest-first audit entries, filtered by type or target."""
    return await get_activity_logs(store, limit=limit, type=type, target_id=target_id)
