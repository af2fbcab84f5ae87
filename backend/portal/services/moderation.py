"""Bans and blacklist, keyed by Discord id (one entry per user per list)."""
import logging
from typing import List, Optional

from portal.models import BanEntry, BlacklistEntry
from portal.models.common import utcnow
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)


class ModerationEntryExistsError(Exception):
    """Raised when a user is already on the list"""
    pass


class ModerationEntryNotFoundError(Exception):
    """Raised when a user is not on the list"""
    pass


async def is_banned(store: CollectionStore, discord_id: str) -> bool:
    return any(ban.discord_id == discord_id for ban in await store.bans.read())


async def is_blacklisted(store: CollectionStore, discord_id: str) -> bool:
    return any(entry.discord_id == discord_id for entry in await store.blacklist.read())


async def list_bans(store: CollectionStore) -> List[BanEntry]:
    return await store.bans.read()


async def list_blacklist(store: CollectionStore) -> List[BlacklistEntry]:
    return await store.blacklist.read()


async def add_ban(
    store: CollectionStore,
    discord_id: str,
    reason: str,
    admin: str,
    expires: Optional[str] = None,
) -> BanEntry:
    async with store.bans.transaction() as bans:
        if any(ban.discord_id == discord_id for ban in bans):
            raise ModerationEntryExistsError("User is already banned")
        entry = BanEntry(discord_id=discord_id, reason=reason, admin=admin, expires=expires)
        bans.append(entry)
    logger.info(f"Banned {discord_id} (by {admin})")
    return entry


async def add_blacklist(store: CollectionStore, discord_id: str, reason: str, admin: str) -> BlacklistEntry:
    async with store.blacklist.transaction() as blacklist:
        if any(entry.discord_id == discord_id for entry in blacklist):
            raise ModerationEntryExistsError("User is already blacklisted")
        entry = BlacklistEntry(
            discord_id=discord_id,
            reason=reason,
            admin=admin,
            date=utcnow().date().isoformat(),
        )
        blacklist.append(entry)
    logger.info(f"Blacklisted {discord_id} (by {admin})")
    return entry


async def remove_ban(store: CollectionStore, discord_id: str) -> None:
    async with store.bans.transaction() as bans:
        remaining = [ban for ban in bans if ban.discord_id != discord_id]
        if len(remaining) == len(bans):
            raise ModerationEntryNotFoundError("User not found in bans")
        bans[:] = remaining
    logger.info(f"Unbanned {discord_id}")


async def remove_blacklist(store: CollectionStore, discord_id: str) -> None:
    async with store.blacklist.transaction() as blacklist:
        remaining = [entry for entry in blacklist if entry.discord_id != discord_id]
        if len(remaining) == len(blacklist):
            raise ModerationEntryNotFoundError("User not found in blacklist")
        blacklist[:] = remaining
    logger.info(f"Removed {discord_id} from blacklist")
