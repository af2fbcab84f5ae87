"""
Activity audit log.

Append-only and fire-and-forget: a failure to record an entry is logged and
never propagated to the caller.
"""
import logging
import secrets
import time
from typing import Any, Dict, List, Optional

from portal.config import settings
from portal.models import ActivityLogEntry, ActivityType
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)


def _entry_id() -> str:
    return f"{int(time.time() * 1000)}{secrets.token_hex(4)}"


async def log_activity(
    store: CollectionStore,
    type: ActivityType | str,
    user_id: str,
    user_name: str,
    target_id: Optional[str] = None,
    target_name: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[ActivityLogEntry]:
    """Record an audit entry. Returns the entry, or None if it could not be written."""
    entry = ActivityLogEntry(
        id=_entry_id(),
        type=type.value if isinstance(type, ActivityType) else type,
        user_id=user_id,
        user_name=user_name,
        target_id=target_id,
        target_name=target_name,
        details=details,
    )
    try:
        async with store.activity_log.transaction() as logs:
            logs.append(entry)
            # Keep only the newest entries
            overflow = len(logs) - settings.activity_log_max_entries
            if overflow > 0:
                del logs[:overflow]
    except Exception as e:
        logger.error(f"Error logging activity {entry.type}: {e}", exc_info=True)
        return None
    return entry


async def get_activity_logs(
    store: CollectionStore,
    limit: int = 100,
    type: Optional[str] = None,
    target_id: Optional[str] = None,
) -> List[ActivityLogEntry]:
    """Newest-first audit entries, optionally filtered by type or target."""
    logs = await store.activity_log.read()
    if type:
        logs = [log for log in logs if log.type == type]
    elif target_id:
        logs = [log for log in logs if log.target_id == target_id]
    return list(reversed(logs[-limit:])) if limit > 0 else []
