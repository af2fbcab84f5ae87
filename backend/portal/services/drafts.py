"""
Saved application drafts.

A draft belongs to the Discord user who saved it. Owners only ever see,
overwrite or delete their own drafts.
"""
import logging
from typing import Any, Dict, List, Optional

from portal.models import ApplicationDraft, DiscordIdentity
from portal.models.common import utcnow
from portal.services.applications import generate_application_id
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)

# Keys stamped by the server, never taken from the saved answers
RESERVED_KEYS = {"id", "discord", "lastSaved", "last_saved"}


class DraftNotFoundError(Exception):
    """Raised when the owner has no draft with the given id"""
    pass


def _owned(draft: ApplicationDraft, draft_id: str, owner_id: str) -> bool:
    return draft.id == draft_id and draft.discord.id == owner_id


async def list_drafts(store: CollectionStore, owner_id: str) -> List[ApplicationDraft]:
    return [d for d in await store.drafts.read() if d.discord.id == owner_id]


async def save_draft(
    store: CollectionStore,
    owner: DiscordIdentity,
    answers: Dict[str, Any],
    draft_id: Optional[str] = None,
) -> ApplicationDraft:
    """
    Create or replace a draft.

    Without `draft_id` a new id is assigned. With one, the owner's draft of
    that id is replaced whole, or created if it does not exist yet.
    """
    answers = {k: v for k, v in answers.items() if k not in RESERVED_KEYS}
    async with store.drafts.transaction() as drafts:
        draft_id = draft_id or generate_application_id(d.id for d in drafts)
        draft = ApplicationDraft(id=draft_id, discord=owner, last_saved=utcnow(), **answers)
        for index, existing in enumerate(drafts):
            if _owned(existing, draft_id, owner.id):
                drafts[index] = draft
                break
        else:
            drafts.append(draft)

    logger.debug(f"Saved draft {draft_id} for {owner.username}")
    return draft


async def delete_draft(store: CollectionStore, owner_id: str, draft_id: str) -> None:
    async with store.drafts.transaction() as drafts:
        remaining = [d for d in drafts if not _owned(d, draft_id, owner_id)]
        if len(remaining) == len(drafts):
            raise DraftNotFoundError(f"Draft {draft_id} not found")
        drafts[:] = remaining

